"""
iteratez - Models

The action protocol exchanged between a source and the iterator driving it,
plus the pydantic models holding comparison configuration and the options
accepted by the comparison presets and the shuffle view.
"""

from datetime import timedelta
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IterateAction(str, Enum):
    """Action requested by the consumer of the current element"""
    CONTINUE = "continue"
    STOP = "stop"
    REMOVE = "remove"
    REPLACE = "replace"


Comparator = Callable[[Any, Any], float]
Equality = Callable[[Any, Any], Any]


class IterateLogic(BaseModel):
    """
    Comparison configuration carried by an iterator.

    Instances are frozen: every change produces a new model, so a view that
    copied the logic of its parent never sees later changes on the parent.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    comparator: Optional[Comparator] = Field(
        None,
        description="Orders two values: negative, zero or positive"
    )
    equality: Optional[Equality] = Field(
        None,
        description="Returns a truthy value when two values are equal"
    )

    def with_comparator(self, comparator: Comparator) -> "IterateLogic":
        """Set the comparator, deriving equality from it when none is set"""
        update = {"comparator": comparator}
        if self.equality is None:
            update["equality"] = lambda a, b: comparator(a, b) == 0
        return self.model_copy(update=update)

    def with_equality(self, equality: Equality) -> "IterateLogic":
        return self.model_copy(update={"equality": equality})

    def with_logic(self, comparator: Comparator, equality: Optional[Equality] = None) -> "IterateLogic":
        """Replace both functions; equality defaults to ``comparator(a, b) == 0``"""
        if equality is None:
            equality = lambda a, b: comparator(a, b) == 0
        return self.model_copy(update={"comparator": comparator, "equality": equality})

    def descending(self, comparator: Optional[Comparator] = None) -> "IterateLogic":
        """Swap the arguments of the given or current comparator"""
        compare = comparator or self.comparator
        if compare is None:
            return self
        return self.model_copy(update={"comparator": lambda a, b: compare(b, a)})


class CompareOptions(BaseModel):
    """Ordering options shared by all comparator presets"""
    ascending: bool = Field(
        True,
        description="Whether valid values are ordered smallest first"
    )
    nulls_first: bool = Field(
        False,
        description="Whether values of the wrong type are ordered before valid ones"
    )


class StringCompareOptions(CompareOptions):
    """Ordering options for strings"""
    sensitive: bool = Field(
        True,
        description="Whether comparison is case sensitive"
    )


class DateEqualityOptions(BaseModel):
    """Options deciding when two dates are considered equal"""
    timespan: timedelta = Field(
        timedelta(milliseconds=1),
        description="Two dates in the same span of this length are equal"
    )
    utc: bool = Field(
        True,
        description="Compare instants (True) or local wall-clock times (False)"
    )

    @field_validator('timespan')
    @classmethod
    def validate_timespan(cls, v):
        """Timespan must be positive"""
        if v <= timedelta(0):
            raise ValueError("Equality timespan must be positive")
        return v


class ShuffleOptions(BaseModel):
    """Options for the shuffle view"""
    passes: int = Field(
        1,
        description="Number of swap passes over the resolved values",
        ge=0
    )
