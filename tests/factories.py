"""Builders for test documents."""


def make_record(abn="12345678901", **fields):
    """Store document for ``AbnRecordStore.insert`` with required defaults."""
    doc = {
        "abn": abn,
        "status": "Active",
        "gst_status": "Cancelled",
        "organisation_name": f"Company {abn}",
    }
    doc.update(fields)
    return doc


def make_name(abn="12345678901", name="Example Trading Name", type="TradingName"):
    return {"abn": abn, "name": name, "type": type}


def abn_for(i):
    """Distinct valid ABN for index ``i``."""
    return f"{10000000000 + i:011d}"
