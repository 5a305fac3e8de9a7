"""Test harness for declx trees: verifiers, assertions and a headless robot."""

from declx.errors import VerificationError
from declx.testing.assertions import BindingAssertion, PropertyAssertion, TransitionBuilder
from declx.testing.robot import Fixture, Robot
from declx.testing.verifiers import CountVerifier, TransitionVerifier, Verifier

__all__ = [
    "BindingAssertion",
    "CountVerifier",
    "Fixture",
    "PropertyAssertion",
    "Robot",
    "TransitionBuilder",
    "TransitionVerifier",
    "VerificationError",
    "Verifier",
]
