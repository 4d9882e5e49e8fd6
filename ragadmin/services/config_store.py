import copy
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ValidationError

from ragadmin.core.exceptions import ConfigValidationError
from ragadmin.models.configuration import Configuration
from ragadmin.schemas.configuration import CONFIG_MODELS, ConfigKey, GoogleDriveIntegrationConfig
from ragadmin.services.base import BaseService
from ragadmin.services.secret_store import (
    CHAT_DEFAULT_SECRET,
    EMBEDDING_DEFAULT_SECRET,
    GOOGLE_DRIVE_PRIVATE_KEY,
    SecretStore,
    chat_secret_name,
    embedding_secret_name,
)


def _secret_string(key: str, field: str, secret: Any) -> Optional[str]:
    if secret is not None and not isinstance(secret, str):
        raise ConfigValidationError(key, [{"field": field, "msg": "must be a string"}])
    return secret


def _secret_map(key: str, field: str, secrets: Any) -> dict:
    if secrets is None:
        return {}
    if not isinstance(secrets, dict):
        raise ConfigValidationError(key, [{"field": field, "msg": "must be an object"}])
    for provider, secret in secrets.items():
        _secret_string(key, f"{field}.{provider}", secret)
    return secrets


def split_secrets(key: str, value: Any) -> Tuple[Any, List[Tuple[str, str]]]:
    """
    Separate API keys from a configuration value.
    Returns the value without secret fields and a list of (secret name, secret).
    Secret fields of the wrong type raise ConfigValidationError.
    """
    if not isinstance(value, dict):
        return value, []
    value = copy.deepcopy(value)
    found: List[Tuple[str, str]] = []

    if key == ConfigKey.DOCUMENT_PROCESSING.value:
        general = _secret_string(key, "apiKey", value.pop("apiKey", None))
        per_provider = _secret_map(key, "providerApiKeys", value.pop("providerApiKeys", None))
        if general:
            found.append((EMBEDDING_DEFAULT_SECRET, general))
        found.extend((embedding_secret_name(p), k) for p, k in per_provider.items() if k)

    elif key == ConfigKey.CHAT_SETTINGS.value:
        general = _secret_string(key, "apiKey", value.pop("apiKey", None))
        per_provider = _secret_map(key, "chatProviderApiKeys", value.pop("chatProviderApiKeys", None))
        if general:
            found.append((CHAT_DEFAULT_SECRET, general))
        found.extend((chat_secret_name(p), k) for p, k in per_provider.items() if k)

    elif key == ConfigKey.GOOGLE_DRIVE_INTEGRATION.value:
        private_key = _secret_string(key, "private_key", value.pop("private_key", None))
        if private_key:
            found.append((GOOGLE_DRIVE_PRIVATE_KEY, private_key))

    return value, found


class ConfigStore(BaseService):
    """
    Key to JSON store for admin configuration.

    Known keys are validated against their model before they are written.
    API keys found in incoming values are moved to the SecretStore and never
    persisted in the configuration table. Last write wins.
    """

    def __init__(self, db, secrets: Optional[SecretStore] = None):
        super().__init__(db)
        self.secrets = secrets or SecretStore(db)

    def _find(self, key: str) -> Optional[Configuration]:
        return self.db.query(Configuration).filter(Configuration.key == key).first()

    def get(self, key: str) -> Optional[Any]:
        record = self._find(key)
        return record.value if record else None

    def get_record(self, key: str) -> Optional[Configuration]:
        return self._find(key)

    def get_typed(self, key: str) -> BaseModel:
        """Validated value for a known key, falling back to the model defaults when unset."""
        model = CONFIG_MODELS.get(key)
        if model is None:
            raise KeyError(f"No typed model for configuration key '{key}'")
        value = self.get(key)
        if value is None:
            return model()
        try:
            return model.model_validate(value)
        except ValidationError as e:
            # Rows written before validation existed can still be malformed
            self._logger.warning(f"Stored configuration '{key}' is invalid, using defaults: {e}")
            return model()

    def list_all(self) -> List[Configuration]:
        return self.db.query(Configuration).order_by(Configuration.key).all()

    def _validate(self, key: str, value: Any) -> Any:
        model = CONFIG_MODELS.get(key)
        if model is None:
            return value
        try:
            parsed = model.model_validate(value)
        except ValidationError as e:
            errors = [
                {"field": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
                for err in e.errors()
            ]
            raise ConfigValidationError(key, errors)
        return parsed.model_dump(mode="json", by_alias=True, exclude_none=True)

    def upsert(self, key: str, value: Any) -> Configuration:
        if not key:
            raise ValueError("Configuration key is required")

        stripped, secrets = split_secrets(key, value)
        # Validation runs first so a rejected write stores nothing, secrets included
        normalized = self._validate(key, stripped)

        for name, secret in secrets:
            self.secrets.set_key(name, secret, commit=False)

        record = self._find(key)
        if record is None:
            record = Configuration(key=key, value=normalized)
            self.db.add(record)
        else:
            record.value = normalized
        self.db.commit()
        self.db.refresh(record)
        self.log_info(f"Configuration '{key}' saved ({len(secrets)} secret(s) moved to the secret store)")
        return record

    def delete(self, key: str) -> bool:
        record = self._find(key)
        if record is None:
            return False
        self.db.delete(record)
        self.db.commit()
        self.log_info(f"Configuration '{key}' deleted")
        return True

    def google_drive_credentials(self) -> GoogleDriveIntegrationConfig:
        """Drive settings with the private key restored from the secret store."""
        config = self.get_typed(ConfigKey.GOOGLE_DRIVE_INTEGRATION.value)
        private_key = self.secrets.get_key(GOOGLE_DRIVE_PRIVATE_KEY)
        if private_key:
            config = config.model_copy(update={"private_key": private_key})
        return config
