"""Provider Store — lookups used by the workflow and the audit formatter."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from delivery.provider.provider import Provider, ProviderStatus


class ProviderStore:
    def get(self, provider_id) -> Provider | None:
        """Provider by id; unassigned ids (None, "", "0") yield None."""
        if provider_id in (None, "", 0) or str(provider_id).strip() == "0":
            return None
        try:
            return current_domain.repository_for(Provider).get(str(provider_id))
        except ObjectNotFoundError:
            return None

    def all(self) -> list[Provider]:
        providers = current_domain.repository_for(Provider)._dao.query.all().items
        return sorted(providers, key=lambda provider: provider.name.casefold())

    def eligible_for(self, source: str | None, target: str | None) -> list[Provider]:
        """Active providers offering the order's language pair."""
        return [
            provider
            for provider in self.all()
            if provider.status == ProviderStatus.ACTIVE.value and provider.supports(source, target)
        ]

    def name_of(self, provider_id) -> str | None:
        provider = self.get(provider_id)
        return provider.name if provider else None
