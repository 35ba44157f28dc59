"""
Namespace Ensurer

Get-or-create for namespaces, tolerant of another writer creating the same
namespace concurrently, and a bounded wait for namespaces that another actor
in the same startup sequence is responsible for creating.
"""

import logging
import time
from typing import Callable, Optional, Tuple

from ..core.constants import BootstrapConstants
from ..core.data_models import Namespace
from ..core.exceptions import AlreadyExistsError, BootstrapError, NotFoundError
from ..core.protocols import NamespaceStore

logger = logging.getLogger(__name__)


class NamespaceEnsurer:
    """Ensures namespaces exist before later steps use them"""

    def __init__(self, namespace_store: NamespaceStore, sleep: Callable[[float], None] = time.sleep):
        """
        Initialize the ensurer

        Args:
            namespace_store: Namespace store
            sleep: Sleep function used between polls (injectable for tests)
        """
        self.namespaces = namespace_store
        self.sleep = sleep

    def ensure(self, name: str) -> Optional[Namespace]:
        """
        Create the namespace, or fetch it if it already exists

        Args:
            name: Namespace name

        Returns:
            The stored namespace, or None if it could not be created or fetched
        """
        try:
            namespace = self.namespaces.create(Namespace(name=name))
            logger.info(f"Created namespace {name}")
            return namespace
        except AlreadyExistsError:
            pass
        except BootstrapError as e:
            logger.error(f"Error creating namespace {name}: {e}")
            return None

        try:
            return self.namespaces.get(name)
        except BootstrapError as e:
            logger.error(f"Error getting namespace {name}: {e}")
            return None

    def get_or_create(self, name: str) -> Tuple[Optional[Namespace], bool]:
        """
        Fetch the namespace, creating it only when it does not exist

        Args:
            name: Namespace name

        Returns:
            Tuple of (namespace or None, whether this call created it)
        """
        try:
            return self.namespaces.get(name), False
        except NotFoundError:
            pass
        except BootstrapError as e:
            logger.error(f"Error getting namespace {name}: {e}")
            return None, False

        try:
            namespace = self.namespaces.create(Namespace(name=name))
        except BootstrapError as e:
            logger.error(f"Error creating namespace {name}: {e}")
            return None, False

        logger.info(f"Created namespace {name}")
        return namespace, True

    def wait_for(self, name: str, attempts: int = BootstrapConstants.NAMESPACE_WAIT_ATTEMPTS,
                 interval: float = BootstrapConstants.NAMESPACE_WAIT_INTERVAL) -> Optional[Namespace]:
        """
        Poll until a namespace created by someone else becomes visible

        Args:
            name: Namespace name
            attempts: Maximum number of fetches
            interval: Seconds between fetches

        Returns:
            The namespace, or None if it did not appear or could not be read
        """
        for attempt in range(1, attempts + 1):
            try:
                return self.namespaces.get(name)
            except NotFoundError:
                logger.debug(f"Namespace {name} not found yet (attempt {attempt}/{attempts})")
            except BootstrapError as e:
                logger.error(f"Error waiting for namespace {name}: {e}")
                return None
            if attempt < attempts:
                self.sleep(interval)

        logger.error(f"Namespace {name} not found after {attempts} attempts, "
                     f"could not initialize the {name} namespace")
        return None
