from enum import Enum
from typing import Optional, Type, TypeVar

E = TypeVar('E', bound='RichEnum')


class RichEnum(Enum):
    """
    Enum with case-insensitive lookup by value and plain-value string conversion.
    """

    @classmethod
    def from_str(cls: Type[E], string: str, default: Optional[E] = None) -> E:
        """
        Retrieve enum member by string value (case-insensitive for strings).
        """
        if string is None:
            if default is not None:
                return default
            raise ValueError(f'Cannot look up None in {cls.__name__}')

        for member in cls:
            val = member.value
            if string == val or (
                isinstance(val, str) and string.lower() == val.lower()
            ):
                return member

        if default is not None:
            return default

        raise KeyError(f"'{string}' not found in {cls.__name__}")

    def __str__(self) -> str:
        return str(self.value)
