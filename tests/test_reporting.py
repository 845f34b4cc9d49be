import csv

from receipt_scanner.core.reporting import format_table, write_csv


def test_write_csv(tmp_path, record_factory):
    out = tmp_path / "receipts.csv"
    write_csv([record_factory(company="Joe's Café", cost=12.5)], out)

    with out.open(encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert rows == [{
        "date": "2024-01-05",
        "company_name": "Joe's Café",
        "category": "Restaurant",
        "meal_type": "Lunch",
        "cost": "12.50",
        "original_file_name": "img.jpg",
        "mime_type": "image/jpeg",
    }]


def test_format_table_marks_previewed_row(record_factory):
    table = format_table([record_factory(company="A"), record_factory(company="B")], cursor=1)
    lines = table.splitlines()
    assert len(lines) == 3
    assert lines[1].startswith(" ")
    assert lines[2].startswith(">")
    assert "$10.00" in lines[2]
