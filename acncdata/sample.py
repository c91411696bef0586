"""Small fixed dataset served when the real database is unavailable."""

from acncdata.database import Store
from acncdata.ingestion import RecordImporter

# Rows in the 2017+ export layout, keyed by reporting year
SAMPLE_ROWS = {
    2021: [
        {
            "abn": "11000000001",
            "charity name": "Harbour City Food Relief Inc",
            "charity size": "Large",
            "basic religious charity": "N",
            "charity website": "https://example.org/food-relief",
            "how purposes were pursued": "Distributed groceries and hot meals across the inner city.",
            "total revenue": "4,200,000",
            "total expenses": "3,900,000",
            "net surplus/deficit": "300,000",
            "total assets": "2,100,000",
            "total liabilities": "400,000",
            "staff - full time": "18",
            "staff - volunteers": "240",
        },
        {
            "abn": "11000000002",
            "charity name": "Riverbend Community Library Association",
            "charity size": "Small",
            "basic religious charity": "N",
            "total revenue": "85,000",
            "total expenses": "79,500",
            "net surplus/deficit": "5,500",
            "total assets": "120,000",
            "total liabilities": "3,000",
            "staff - volunteers": "35",
        },
    ],
    2022: [
        {
            "abn": "11000000001",
            "charity name": "Harbour City Food Relief Inc",
            "charity size": "Large",
            "basic religious charity": "N",
            "charity website": "https://example.org/food-relief",
            "how purposes were pursued": "Expanded the mobile pantry to regional towns.",
            "total revenue": "4,750,000",
            "total expenses": "4,500,000",
            "net surplus/deficit": "250,000",
            "total assets": "2,350,000",
            "total liabilities": "420,000",
            "staff - full time": "21",
            "staff - volunteers": "265",
        },
        {
            "abn": "11000000003",
            "charity name": "St Brigid's Parish Welfare Fund",
            "charity size": "Medium",
            "basic religious charity": "Y",
            "total revenue": "610,000",
            "total expenses": "598,000",
            "net surplus/deficit": "12,000",
            "total assets": "890,000",
            "total liabilities": "15,000",
            "staff - part time": "4",
        },
    ],
}


def sample_store() -> Store:
    """In-memory store seeded with SAMPLE_ROWS through the normal importer."""
    store = Store.in_memory()
    store.ensure_schema()
    importer = RecordImporter()
    with store.session() as session:
        for year, rows in SAMPLE_ROWS.items():
            for row in rows:
                importer.import_record(session, row, year)
    return store
