import base64

import pytest

from receipt_scanner.core.models import OriginalFileData, ReceiptRecord


def make_record(company="Cafe", cost=10.0, date="2024-01-05", category="Restaurant",
                meal_type="Lunch", file_name="img.jpg", data=b"original-bytes",
                mime_type="image/jpeg"):
    return ReceiptRecord(
        date=date,
        company_name=company,
        category=category,
        meal_type=meal_type,
        cost=cost,
        original_file_data=OriginalFileData(base64.b64encode(data).decode("ascii"), mime_type),
        original_file_name=file_name,
        extraction_image=base64.b64encode(b"preview").decode("ascii"),
    )


@pytest.fixture
def record_factory():
    return make_record
