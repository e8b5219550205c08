"""Pytest configuration and shared fixtures."""

import pytest
from rest_framework.test import APIClient

from tests.fakes import FakeLending


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def lending() -> FakeLending:
    return FakeLending()


@pytest.fixture
def borrower(django_user_model):
    return django_user_model.objects.create_user(username="ursula", password="s3cret-pass")


@pytest.fixture
def other_borrower(django_user_model):
    return django_user_model.objects.create_user(username="ged", password="s3cret-pass")


@pytest.fixture
def staff(django_user_model):
    return django_user_model.objects.create_user(
        username="librarian", password="s3cret-pass", is_staff=True
    )


@pytest.fixture
def make_book(db):
    from lending.models import Book

    def make(title: str = "Dune", quantity: int = 2, available: int | None = None, **kwargs) -> Book:
        return Book.objects.create(
            title=title,
            author=kwargs.pop("author", "Frank Herbert"),
            quantity=quantity,
            available=quantity if available is None else available,
            **kwargs,
        )

    return make
