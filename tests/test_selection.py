import pytest

from agent_provisioner.models import ProviderPriority
from agent_provisioner.orchestration.selection import select_providers_by_minimum_priority


def test_medium_tier_keeps_high_then_medium_in_input_order(make_provider) -> None:
    providers = [
        make_provider("alpha", ProviderPriority.HIGH),
        make_provider("bravo", ProviderPriority.MEDIUM),
        make_provider("charlie", ProviderPriority.LOW),
        make_provider("delta", ProviderPriority.MEDIUM),
    ]

    selected = select_providers_by_minimum_priority(providers, "medium")

    assert [item.id for item in selected] == ["alpha", "bravo", "delta"]


def test_low_tier_keeps_everything_sorted_by_tier(make_provider) -> None:
    providers = [
        make_provider("low-one", ProviderPriority.LOW),
        make_provider("high-one", ProviderPriority.HIGH),
        make_provider("medium-one", ProviderPriority.MEDIUM),
        make_provider("high-two", ProviderPriority.HIGH),
    ]

    selected = select_providers_by_minimum_priority(providers)

    assert [item.id for item in selected] == [
        "high-one",
        "high-two",
        "medium-one",
        "low-one",
    ]


def test_high_tier_only_returns_high(make_provider) -> None:
    providers = [
        make_provider("a", ProviderPriority.MEDIUM),
        make_provider("b", ProviderPriority.HIGH),
    ]

    selected = select_providers_by_minimum_priority(providers, ProviderPriority.HIGH)

    assert [item.id for item in selected] == ["b"]


def test_empty_input_returns_empty() -> None:
    assert select_providers_by_minimum_priority([], "high") == []


def test_unknown_tier_is_rejected(make_provider) -> None:
    with pytest.raises(ValueError):
        select_providers_by_minimum_priority([make_provider("a")], "urgent")
