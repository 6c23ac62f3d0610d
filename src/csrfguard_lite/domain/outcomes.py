"""Hook outcomes: how a hook tells the pipeline to continue.

A hook returns exactly one of these. Returning the outcome (instead of
calling next/resolve/reject on a shared handler) means a hook cannot
signal twice, and "forgot to signal" shows up as a None return that
the stage rejects loudly.

    Proceed(envelope)  hand the (possibly modified) envelope onward
    Resolve(response)  finish with a success
    Reject(failure)    finish with a terminal failure
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TypeAlias

from csrfguard_lite.domain.envelopes import (
    FailureEnvelope,
    RequestSpec,
    ResponseEnvelope,
)

Envelope: TypeAlias = RequestSpec | ResponseEnvelope | FailureEnvelope


class HookKind(Enum):
    REQUEST = auto()
    RESPONSE = auto()
    ERROR = auto()

    def envelope_type(self) -> type:
        """The envelope type a Proceed from this hook must carry."""
        return _PROCEED_TYPES[self]


_PROCEED_TYPES: dict[HookKind, type] = {
    HookKind.REQUEST: RequestSpec,
    HookKind.RESPONSE: ResponseEnvelope,
    HookKind.ERROR: FailureEnvelope,
}


@dataclass(frozen=True, slots=True)
class Proceed:
    envelope: Envelope


@dataclass(frozen=True, slots=True)
class Resolve:
    response: ResponseEnvelope


@dataclass(frozen=True, slots=True)
class Reject:
    failure: FailureEnvelope


HookResult: TypeAlias = Proceed | Resolve | Reject
