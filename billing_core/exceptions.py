class MalformedRecord(Exception):
    """Raised when a record has an unparseable date or amount.

    The engines catch it, count the record as skipped and carry on;
    a dashboard stays available even when a few documents are bad.
    """

    def __init__(self, record_id, field, value):
        self.record_id = record_id
        self.field = field
        self.value = value
        super().__init__(f"Record {record_id!r}: unusable {field} {value!r}")


class UpstreamFetchFailure(Exception):
    """Raised when billing records cannot be read from the database."""
    pass


class ImmutableRecordError(Exception):
    """Raised on an attempt to edit a payment after it was recorded."""
    pass
