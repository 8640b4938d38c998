"""
API key lookup for the external classifier providers.

Keys are resolved from the environment first (ANTHROPIC_API_KEY,
OPENAI_API_KEY, ...), then from the system keyring:
- Windows Credential Manager
- macOS Keychain
- Linux Secret Service (GNOME Keyring, KWallet)
"""

import logging
import os
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

logger = logging.getLogger(__name__)

# Service name for keyring entries
SERVICE_NAME = "inboxtriage"


def _env_var(provider: str) -> str:
    return f"{provider.upper()}_API_KEY"


def get_api_key(provider: str) -> Optional[str]:
    """
    Retrieve the API key for a provider.

    Args:
        provider: Provider name (e.g., 'anthropic', 'openai')

    Returns:
        API key string or None if not found
    """
    key = os.environ.get(_env_var(provider))
    if key:
        logger.debug(f"Using API key for {provider} from environment")
        return key

    try:
        key = keyring.get_password(SERVICE_NAME, f"{provider}_api_key")
        if key:
            logger.debug(f"Retrieved API key for {provider} from keyring")
        return key
    except Exception as e:
        # Any backend failure means "no key"; the provider is then skipped
        logger.warning(f"Keyring lookup failed for {provider}: {e}")
        return None


def set_api_key(provider: str, api_key: str) -> bool:
    """
    Store the API key for a provider in the keyring.

    Returns:
        True if successful, False otherwise
    """
    try:
        keyring.set_password(SERVICE_NAME, f"{provider}_api_key", api_key)
        logger.info(f"Stored API key for {provider} in keyring")
        return True
    except KeyringError as e:
        logger.error(f"Failed to store API key for {provider}: {e}")
        return False


def delete_api_key(provider: str) -> bool:
    """Remove the API key for a provider from the keyring."""
    try:
        keyring.delete_password(SERVICE_NAME, f"{provider}_api_key")
        logger.info(f"Deleted API key for {provider} from keyring")
        return True
    except PasswordDeleteError:
        logger.warning(f"No API key found for {provider} to delete")
        return False
    except KeyringError as e:
        logger.error(f"Failed to delete API key for {provider}: {e}")
        return False
