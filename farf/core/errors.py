class FarfError(Exception):
    pass


class NotFoundError(FarfError):
    def __init__(self, kind: str, item_id: str):
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"no {kind} with id '{item_id}'")


class ValidationError(FarfError):
    pass


class PersistenceError(FarfError):
    pass


class AmbiguousError(FarfError):
    def __init__(self, ref: str, count: int = 0, sample: list[str] | None = None):
        self.ref = ref
        self.count = count
        self.sample = sample or []
        count_note = f" ({count})" if count else ""
        note = f": {', '.join(self.sample)}" if self.sample else ""
        super().__init__(f"ambiguous ref '{ref}' matches multiple items{count_note}{note}")
