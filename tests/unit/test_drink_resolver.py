"""Unit tests for drink name resolution."""
import pytest
from unittest.mock import AsyncMock

from barista.core.config import OrderingLimits
from barista.services.menu.in_memory_menu import InMemoryMenuProvider
from barista.services.menu.repository import MenuRepository
from barista.services.ordering.drink_resolver import DrinkResolver, normalize_drink_name
from barista.services.search.base import DrinkMatch


class TestNormalize:
    def test_lowercases_and_collapses_spaces(self):
        assert normalize_drink_name("  Iced   Coffee ") == "iced coffee"

    def test_strips_known_plural(self):
        assert normalize_drink_name("Lattes") == "latte"
        assert normalize_drink_name("cappuccinos") == "cappuccino"
        assert normalize_drink_name("hot chocolates") == "hot chocolate"
        assert normalize_drink_name("Cold Brews") == "cold brew"

    def test_keeps_words_ending_in_s(self):
        assert normalize_drink_name("Espresso") == "espresso"
        assert normalize_drink_name("Nitro Cold Brew Plus") == "nitro cold brew plus"


class TestDrinkResolver:
    """Test the resolution strategies in order."""

    @pytest.fixture
    def resolver(self, test_menu_repository, fake_search):
        return DrinkResolver(test_menu_repository, fake_search)

    @pytest.mark.asyncio
    async def test_exact_candidate_wins(self, resolver, test_menu_repository):
        candidates = await test_menu_repository.find_all()
        drink = await resolver.resolve("cappuccino", candidates)
        assert drink.name == "Cappuccino"

    @pytest.mark.asyncio
    async def test_substring_candidate(self, resolver, test_menu_repository):
        macchiato = await test_menu_repository.find_by_name("Caramel Macchiato")
        drink = await resolver.resolve("macchiato", [macchiato])
        assert drink.name == "Caramel Macchiato"

    @pytest.mark.asyncio
    async def test_plural_name_against_candidates(self, resolver, test_menu_repository):
        latte = await test_menu_repository.find_by_name("Caffè Latte")
        drink = await resolver.resolve("Lattes", [latte])
        assert drink.name == "Caffè Latte"

    @pytest.mark.asyncio
    async def test_alias_without_candidates(self, resolver):
        drink = await resolver.resolve("café con leche", [])
        assert drink.name == "Caffè Latte"

    @pytest.mark.asyncio
    async def test_menu_lookup_without_candidates(self, resolver):
        drink = await resolver.resolve("ESPRESSO", [])
        assert drink.name == "Espresso"

    @pytest.mark.asyncio
    async def test_plural_menu_lookup(self, resolver):
        drink = await resolver.resolve("hot chocolates", [])
        assert drink.name == "Hot Chocolate"

    @pytest.mark.asyncio
    async def test_semantic_fallback_above_threshold(self, resolver, fake_search):
        # "iced coffee drink" only resolves through similarity
        drink = await resolver.resolve("iced coffee drink", [])
        assert drink.name == "Iced Coffee"
        assert fake_search.calls == ["iced coffee drink"]

    @pytest.mark.asyncio
    async def test_semantic_match_below_threshold_is_ignored(self, test_menu_repository, fake_search):
        resolver = DrinkResolver(test_menu_repository, fake_search, OrderingLimits(semantic_threshold=0.99))
        # Best keyword score for this text is 2/3 (Chai Tea Latte)
        assert await resolver.resolve("something with chai tea", []) is None

    @pytest.mark.asyncio
    async def test_search_failure_resolves_to_none(self, resolver, fake_search):
        fake_search.fail = True
        assert await resolver.resolve("unicorn frappe", []) is None

    @pytest.mark.asyncio
    async def test_unknown_drink(self, resolver):
        assert await resolver.resolve("unicorn frappe", []) is None

    @pytest.mark.asyncio
    async def test_blank_name(self, resolver, fake_search):
        assert await resolver.resolve("   ", []) is None
        assert fake_search.calls == []


class TestResolverPrecedence:
    """Candidate strategies run before menu-wide and semantic ones."""

    @pytest.mark.asyncio
    async def test_candidate_beats_stronger_semantic_match(self):
        menu = MenuRepository(InMemoryMenuProvider())
        latte = await menu.find_by_name("Caffè Latte")
        mocha = await menu.find_by_name("Caffè Mocha")
        search = AsyncMock()
        search.find_similar.return_value = [DrinkMatch(drink=mocha, score=0.99)]
        resolver = DrinkResolver(menu, search)

        drink = await resolver.resolve("latte", [latte])

        assert drink.name == "Caffè Latte"
        search.find_similar.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_semantic_match_used_without_candidates(self):
        menu = MenuRepository(InMemoryMenuProvider())
        mocha = await menu.find_by_name("Caffè Mocha")
        search = AsyncMock()
        search.find_similar.return_value = [DrinkMatch(drink=mocha, score=0.99)]
        resolver = DrinkResolver(menu, search)

        drink = await resolver.resolve("chocolatey espresso thing", [])

        assert drink.name == "Caffè Mocha"
