"""Scenario-based tests for category management."""

import pytest

from quizhub.utils.errors import (
    DuplicateCategoryError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)


class TestCategoryScenarios:
    """Test scenarios for category CRUD."""

    @pytest.mark.asyncio
    async def test_scenario_admin_creates_category(self, server, admin_principal):
        """
        Scenario: An admin creates a category with defaults

        Given: Only a name and description
        When: The admin creates the category
        Then: Default icon, color and estimated time are applied
        """
        category = await server.category_service.create(
            admin_principal, name="  Python  ", description="Python fundamentals"
        )

        assert category.name == "Python"
        assert category.icon == "BookOpen"
        assert category.color == "#667eea"
        assert category.estimated_time == 30
        assert category.is_active

    @pytest.mark.asyncio
    async def test_scenario_duplicate_name(self, server, admin_principal, sample_category):
        with pytest.raises(DuplicateCategoryError):
            await server.category_service.create(
                admin_principal, name=sample_category.name, description="Again"
            )

    @pytest.mark.asyncio
    async def test_scenario_concurrent_duplicate_name(
        self, server, admin_principal, sample_category, monkeypatch
    ):
        """
        Scenario: Two admins create the same category at once

        Given: The name check ran before the other insert landed
        When: The second insert hits the unique name constraint
        Then: It is reported as a duplicate, not a server error
        """

        async def name_not_taken_yet(name):
            return None

        monkeypatch.setattr(server.category_repo, "get_by_name", name_not_taken_yet)

        with pytest.raises(DuplicateCategoryError):
            await server.category_service.create(
                admin_principal, name=sample_category.name, description="Again"
            )

    @pytest.mark.asyncio
    async def test_scenario_invalid_color(self, server, admin_principal):
        with pytest.raises(ValidationError) as exc_info:
            await server.category_service.create(
                admin_principal, name="Colors", description="Bad color", color="blue"
            )

        assert exc_info.value.errors[0]["field"] == "color"

    @pytest.mark.asyncio
    async def test_scenario_lookup_ignores_case(self, server, sample_category):
        category = await server.category_service.lookup("javascript basics")

        assert category.id == sample_category.id

    @pytest.mark.asyncio
    async def test_scenario_students_only_list_active(
        self, server, admin_principal, student_principal, sample_category, inactive_category
    ):
        """
        Scenario: Listing categories

        Given: One active and one inactive category
        When: Everyone lists active categories and an admin lists all
        Then: The public list hides the inactive one
        And: Students cannot list all categories
        """
        active = await server.category_service.list_active()
        assert [c.id for c in active] == [sample_category.id]

        every = await server.category_service.list_all(admin_principal)
        assert {c.id for c in every} == {sample_category.id, inactive_category.id}

        with pytest.raises(ForbiddenError):
            await server.category_service.list_all(student_principal)

    @pytest.mark.asyncio
    async def test_scenario_rename_conflict(self, server, admin_principal, sample_category):
        other = await server.category_service.create(
            admin_principal, name="HTML", description="Markup"
        )

        with pytest.raises(DuplicateCategoryError):
            await server.category_service.update(
                admin_principal, other.id, name=sample_category.name
            )

    @pytest.mark.asyncio
    async def test_scenario_toggle_and_delete(self, server, admin_principal, sample_category):
        toggled = await server.category_service.toggle_status(admin_principal, sample_category.id)
        assert not toggled.is_active

        await server.category_service.delete(admin_principal, sample_category.id)

        with pytest.raises(NotFoundError):
            await server.category_service.get(sample_category.id)
