"""
Service layer for message processing.

This package contains the notification forwarder, the per-message
pipeline (classify, audit, extract, persist, notify) and the dispatcher
that runs one pipeline task per inbound message.
"""
