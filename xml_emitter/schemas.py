"""
Root element descriptor and attribute bag validation.
"""

from collections.abc import Mapping
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .classifier import is_collection
from .types import TypeMisuseError


DEFAULT_ROOT_ELEMENT = "root"

AttributeBag = Dict[str, Any]


def validate_attribute_bag(bag: Any, owner: str = "_attributes") -> AttributeBag:
    """
    Check that an attribute bag is a mapping of names to scalars.

    Args:
        bag: Value found under an attribute key
        owner: Key the bag was found under, for error messages

    Returns:
        The bag with names converted to strings, in original order

    Raises:
        TypeMisuseError: If the bag is not a mapping or holds a collection
    """
    if not isinstance(bag, Mapping):
        raise TypeMisuseError(
            f"'{owner}' must be a mapping of attribute names to scalars, "
            f"got {type(bag).__name__}"
        )

    checked = {}
    for name, value in bag.items():
        if is_collection(value):
            raise TypeMisuseError(
                f"Attribute '{name}' in '{owner}' must be a scalar, got {type(value).__name__}"
            )
        checked[str(name)] = value
    return checked


class RootDescriptor(BaseModel):
    """Document root element name plus the attributes placed on it."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    root_element_name: Optional[str] = Field(default=None, alias="rootElementName")
    attributes: AttributeBag = Field(default_factory=dict, alias="_attributes")
    at_attributes: AttributeBag = Field(default_factory=dict, alias="@attributes")

    @field_validator("attributes", "at_attributes", mode="before")
    @classmethod
    def check_attribute_bag(cls, value: Any) -> AttributeBag:
        if value is None:
            return {}
        try:
            return validate_attribute_bag(value)
        except TypeMisuseError as e:
            raise ValueError(str(e))

    @property
    def element_name(self) -> str:
        return self.root_element_name or DEFAULT_ROOT_ELEMENT

    def attribute_bag(self) -> AttributeBag:
        """Merged attributes; ``@attributes`` overrides ``_attributes``."""
        merged = dict(self.attributes)
        merged.update(self.at_attributes)
        return merged

    @classmethod
    def from_value(cls, descriptor: Union[None, str, Mapping, "RootDescriptor"]) -> "RootDescriptor":
        """
        Build a descriptor from a root name, a configuration mapping or None.

        Raises:
            TypeMisuseError: If the descriptor has the wrong shape
        """
        if descriptor is None:
            return cls()
        if isinstance(descriptor, RootDescriptor):
            return descriptor
        if isinstance(descriptor, str):
            return cls(root_element_name=descriptor)
        if isinstance(descriptor, Mapping):
            try:
                return cls.model_validate(dict(descriptor))
            except ValidationError as e:
                raise TypeMisuseError(f"Invalid root descriptor: {e}") from e

        raise TypeMisuseError(
            f"Root descriptor must be a string or mapping, got {type(descriptor).__name__}"
        )
