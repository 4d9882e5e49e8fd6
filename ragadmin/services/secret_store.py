from typing import List, Optional

from ragadmin.core.security import decrypt_data, encrypt_data, mask_secret
from ragadmin.models.provider_secret import ProviderSecret
from ragadmin.services.base import BaseService


def embedding_secret_name(provider: str) -> str:
    return f"embedding:{provider}"


def chat_secret_name(provider: str) -> str:
    return f"chat:{provider}"


EMBEDDING_DEFAULT_SECRET = embedding_secret_name("default")
CHAT_DEFAULT_SECRET = chat_secret_name("default")
GOOGLE_DRIVE_PRIVATE_KEY = "google_drive:private_key"


class SecretStore(BaseService):
    """Provider API keys, encrypted at rest and kept apart from configuration records."""

    def _find(self, provider: str) -> Optional[ProviderSecret]:
        return self.db.query(ProviderSecret).filter(ProviderSecret.provider == provider).first()

    def set_key(self, provider: str, api_key: str, commit: bool = True) -> ProviderSecret:
        if not provider:
            raise ValueError("provider is required")
        if not api_key:
            raise ValueError("api_key must not be empty")

        secret = self._find(provider)
        if secret is None:
            secret = ProviderSecret(provider=provider, encrypted_key=encrypt_data(api_key))
            self.db.add(secret)
        else:
            secret.encrypted_key = encrypt_data(api_key)
        if commit:
            self.db.commit()
            self.db.refresh(secret)
        else:
            self.db.flush()
        self.log_info(f"Stored secret for provider '{provider}'")
        return secret

    def get_key(self, provider: str) -> Optional[str]:
        secret = self._find(provider)
        if secret is None:
            return None
        return decrypt_data(secret.encrypted_key)

    def first_key(self, *providers: str) -> Optional[str]:
        """Return the first stored key among providers, in priority order."""
        for provider in providers:
            key = self.get_key(provider)
            if key:
                return key
        return None

    def delete_key(self, provider: str) -> bool:
        secret = self._find(provider)
        if secret is None:
            return False
        self.db.delete(secret)
        self.db.commit()
        self.log_info(f"Deleted secret for provider '{provider}'")
        return True

    def list_providers(self) -> List[dict]:
        secrets = self.db.query(ProviderSecret).order_by(ProviderSecret.provider).all()
        return [
            {
                "provider": s.provider,
                "hint": mask_secret(decrypt_data(s.encrypted_key)),
                "updated_at": s.updated_at,
            }
            for s in secrets
        ]
