from typing import Iterable

from agent_provisioner.models import ProviderPriority
from agent_provisioner.registry.models import Provider


def select_providers_by_minimum_priority(
    providers: Iterable[Provider],
    minimum_priority: ProviderPriority | str = ProviderPriority.LOW,
) -> list[Provider]:
    """Keep providers at or above ``minimum_priority``, highest tier first.

    ``sorted`` is stable, so providers of the same tier keep their input order.
    """
    max_rank = ProviderPriority(minimum_priority).rank
    return sorted(
        (provider for provider in providers if provider.priority.rank <= max_rank),
        key=lambda provider: provider.priority.rank,
    )
