from typing import Any, Dict
from src.domain.models import KeyValue, KeyValues

class KeyValueTranslator:
    """
    Anti-corruption layer that translates raw App Configuration JSON payloads into domain models.
    """

    @staticmethod
    def to_domain(raw_item: Dict[str, Any]) -> KeyValue:
        """
        Transforms a raw key-value payload into a KeyValue.

        Args:
            raw_item (Dict[str, Any]): The decoded JSON object returned by the service.

        Returns:
            KeyValue: The domain model. Fields missing from the payload stay None.

        Raises:
            pydantic.ValidationError: If the payload does not have the key-value shape.
        """
        return KeyValue.model_validate(raw_item)

    @staticmethod
    def to_collection(raw_page: Dict[str, Any]) -> KeyValues:
        """
        Transforms a raw listing payload ({"items": [...]}) into KeyValues.
        """
        return KeyValues.model_validate(raw_page)
