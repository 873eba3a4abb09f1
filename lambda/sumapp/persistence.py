"""
Persistence layer for the addition and subtraction practice game.

All game state lives in a single document per Alexa account:

    {"profiles": {name: profile record}, "currentProfile": name | None}

The document is read and written through the ASK SDK attributes manager,
so the backing store is whatever persistence adapter the skill was built
with: DynamoDB in production, or the in-memory adapter below for local
runs and tests.

Every save replaces the whole document and is committed immediately.
If the adapter fails, the previous document is restored in memory and a
StorageError is raised, so no partial change is ever visible.
"""

import copy
import logging

from ask_sdk_core.attributes_manager import AbstractPersistenceAdapter, AttributesManager
from ask_sdk_core.handler_input import HandlerInput
from ask_sdk_dynamodb.partition_keygen import user_id_partition_keygen
from ask_sdk_model import Context, RequestEnvelope, User
from ask_sdk_model.interfaces.system import SystemState

from sumapp.errors import StorageError
from sumapp.models import GameData

logger = logging.getLogger(__name__)

# Top-level keys of the persisted document
ATTR_PROFILES = "profiles"
ATTR_CURRENT_PROFILE = "currentProfile"


class InMemoryPersistenceAdapter(AbstractPersistenceAdapter):
    """
    Persistence adapter keeping documents in a process-local dict.

    Documents are partitioned the same way the DynamoDB adapter does it,
    by the Alexa user id of the request.
    """

    def __init__(self, partition_keygen=user_id_partition_keygen):
        self._partition_keygen = partition_keygen
        self._items: dict[str, dict] = {}

    def get_attributes(self, request_envelope):
        key = self._partition_keygen(request_envelope)
        return copy.deepcopy(self._items.get(key, {}))

    def save_attributes(self, request_envelope, attributes):
        key = self._partition_keygen(request_envelope)
        self._items[key] = copy.deepcopy(attributes)

    def delete_attributes(self, request_envelope):
        key = self._partition_keygen(request_envelope)
        self._items.pop(key, None)


def local_request_envelope(user_id: str = "local-user") -> RequestEnvelope:
    """A minimal request envelope carrying only the user id used as partition key."""
    return RequestEnvelope(context=Context(system=SystemState(user=User(user_id=user_id))))


def local_attributes_manager(
    persistence_adapter: AbstractPersistenceAdapter, user_id: str = "local-user"
) -> AttributesManager:
    """Attributes manager for use outside a skill request (local play, tests)."""
    return AttributesManager(
        request_envelope=local_request_envelope(user_id),
        persistence_adapter=persistence_adapter,
    )


class PersistenceManager:
    """
    Loads and saves the game document.

    This class provides the opaque get/set document store the game core
    works against, abstracting away the ASK SDK and DynamoDB details.
    """

    def __init__(self, attributes_manager: AttributesManager):
        """
        Initialize the persistence manager.

        Args:
            attributes_manager: ASK SDK attributes manager with a
                                persistence adapter configured.
        """
        self._attributes_manager = attributes_manager

    def _load_persistent_attributes(self) -> dict:
        return self._attributes_manager.persistent_attributes

    def load(self) -> GameData:
        """
        Load the whole game document.

        Returns:
            A freshly parsed GameData; mutating it does not touch the store.
        """
        return GameData.from_dict(self._load_persistent_attributes())

    def save(self, game_data: GameData) -> None:
        """
        Replace the stored document with game_data and commit it.

        Raises:
            StorageError: If the adapter could not write the document.
        """
        previous = copy.deepcopy(self._load_persistent_attributes())
        self._attributes_manager.persistent_attributes = game_data.to_dict()
        try:
            self._attributes_manager.save_persistent_attributes()
        except Exception as exc:
            self._attributes_manager.persistent_attributes = previous
            logger.error(f"Saving game document failed: {exc}")
            raise StorageError("Could not save game data") from exc

    def is_empty(self) -> bool:
        """True when no profile has ever been stored for this account."""
        attrs = self._load_persistent_attributes()
        return not attrs.get(ATTR_PROFILES)


def get_persistence_manager(handler_input: HandlerInput) -> PersistenceManager:
    """
    Factory function to get a PersistenceManager for a skill request.

    Args:
        handler_input: The ASK SDK handler input.

    Returns:
        A PersistenceManager instance.
    """
    return PersistenceManager(handler_input.attributes_manager)
