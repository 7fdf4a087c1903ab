class StorageError(RuntimeError):
    pass


class NotFoundError(StorageError):
    pass


class TaskServiceError(RuntimeError):
    pass


class ItemIndexError(IndexError):
    pass


class NotATaskError(ValueError):
    pass
