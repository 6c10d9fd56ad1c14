from vinayak_store.models.local_storage import LocalStorageEntry
