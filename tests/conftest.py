"""Test configuration and fixtures for user-mvc."""

from tests.fixtures import *  # noqa: F401,F403
