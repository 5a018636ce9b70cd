from django.core.exceptions import ValidationError


class OverpaymentError(ValidationError):
    """A payment would take a student's fees beyond the total due."""

    def __init__(self, *, student_id, amount, outstanding):
        self.student_id = student_id
        self.amount = amount
        self.outstanding = outstanding
        super().__init__(
            f"Cannot collect {amount}: only {outstanding} is outstanding for student #{student_id}.",
            code='overpayment',
        )


class ConflictError(ValidationError):
    def __init__(self, message, *, entity='', entity_id=None, field=''):
        self.entity = entity
        self.entity_id = entity_id
        self.field = field
        super().__init__(message, code='conflict')


class PartialBatchFailure(ValidationError):
    """
    Raised after a record-by-record batch when some writes failed.

    `succeeded` lists the ids written, `failed` maps id -> error message, so the
    caller can retry only what is left.
    """

    def __init__(self, action, *, succeeded, failed):
        self.action = action
        self.succeeded = list(succeeded)
        self.failed = dict(failed)
        failed_ids = ', '.join(str(key) for key in self.failed)
        super().__init__(
            f"{action}: {len(self.succeeded)} saved, {len(self.failed)} failed ({failed_ids}).",
            code='partial_batch',
        )


class UpstreamUnavailable(Exception):
    def __init__(self, collection, original=None):
        self.collection = collection
        self.original = original
        super().__init__(f"Data store is unavailable while reading {collection}.")
