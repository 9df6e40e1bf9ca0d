# Vault - Settings Record
#
# Settings live under their own key, unencrypted, and are read and
# written independently of the vault blob.

from pydantic import ValidationError

from .errors import StorageFailure
from .models import Settings
from .storage import SETTINGS_KEY, KeyValueStore


def load_settings(store: KeyValueStore) -> Settings:
    """Stored settings, or defaults when none have been saved yet."""
    raw = store.get(SETTINGS_KEY)
    if raw is None:
        return Settings()
    try:
        return Settings.model_validate(raw)
    except ValidationError as exc:
        raise StorageFailure("Stored settings are malformed") from exc


def save_settings(store: KeyValueStore, settings: Settings) -> None:
    store.set(SETTINGS_KEY, settings.to_dict())
