"""
Shared fixtures: a sample bank alert, its template and a scratch database.
"""
import pytest

from core.db import Database
from core.schema import PERSISTED_MODELS, Template

BANK_SENDER = "alerts@natbank.example"

NBM_MESSAGE = """Dear MR MR JOHN DOE,
	We advise that your account number 12345678 has been credited with MWK20,000.00 on 20220505.
	Description: 98324HAZ123P003.
	Reference: FT12345K1234\\BNK.
	Current Balance: 1,098,724.75.
	Available Balance: 1,093,724.75.
	Cleared Balance: 1,098,724.75.
	Thank you for banking with us."""


@pytest.fixture
def nbm_template() -> Template:
    return Template(
        sender_email=BANK_SENDER,
        template_name="National Bank Of Malawi",
        date_pattern=r"on (?P<date>[0-9]{8})",
        amount_pattern=r"(?P<amount>[0-9,.]{3,18}) on ",
        currency_pattern=r"with (?P<currency>[A-Z]{3})",
        account_number_pattern=r"account number (?P<accountNumber>[0-9]+)",
        vendor_reference_id_pattern=r"Description: (?P<vendorReferenceId>[0-9A-Za-z]{1,255})\.$",
        transaction_reference_id_pattern=r"Reference: (?P<transactionReferenceId>FT[0-9A-Z]+\\BNK)\.$",
    )


@pytest.fixture
def db(tmp_path) -> Database:
    database = Database(str(tmp_path / "transactions.db"))
    database.migrate(PERSISTED_MODELS)
    return database
