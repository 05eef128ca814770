from ledge.utils.dedupe import dedupe_by_key, filter_unknown


def test_dedupe_by_key_keeps_first_occurrence() -> None:
    records = [("HR1-119", "a"), ("HR1-119", "b"), ("S2-119", "c")]

    unique, duplicates = dedupe_by_key(records, lambda r: r[0])

    assert duplicates == 1
    assert unique == [("HR1-119", "a"), ("S2-119", "c")]


def test_dedupe_drops_records_without_key() -> None:
    unique, duplicates = dedupe_by_key([None, "x"], lambda r: r)

    assert unique == ["x"]
    assert duplicates == 0


def test_filter_unknown_removes_stored_ids() -> None:
    fetched = ["HR1-119", "HR2-119", "HR1-119", "S3-119"]

    assert filter_unknown(fetched, lambda b: b, {"HR2-119"}) == ["HR1-119", "S3-119"]
