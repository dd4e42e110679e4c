from collections.abc import Iterable, Iterator

from public_ip.errors import ProviderNotFoundError
from public_ip.providers import (
    abstractapi_com,
    freeipapi_com,
    ifconfig_co,
    ip_api_com,
    ip_api_io,
    ipapi_co,
    ipbase_com,
    ipdata_co,
    ipgeolocation_io,
    ipinfo_io,
    iplocate_io,
    ipleak_net,
    ipwho_is,
    mullvad_net,
    my_ip_io,
)
from public_ip.providers.base import ProviderDescriptor


def _normalize(identifier: str) -> str:
    return identifier.strip().lower()


class ProviderRegistry:
    """Ordered, read-only collection of provider descriptors.

    Registration order is the default fallback order. The registry is never
    mutated after construction, so one instance can be shared freely.
    """

    def __init__(self, descriptors: Iterable[ProviderDescriptor]) -> None:
        self._descriptors = tuple(descriptors)
        self._by_identifier: dict[str, ProviderDescriptor] = {}
        for descriptor in self._descriptors:
            key = _normalize(descriptor.identifier)
            if key in self._by_identifier:
                raise ValueError(f"Duplicate IP provider identifier: {descriptor.identifier}")
            self._by_identifier[key] = descriptor

    def __iter__(self) -> Iterator[ProviderDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, identifier: object) -> bool:
        return isinstance(identifier, str) and _normalize(identifier) in self._by_identifier

    def all(self) -> tuple[ProviderDescriptor, ...]:
        return self._descriptors

    def identifiers(self) -> list[str]:
        return [descriptor.identifier for descriptor in self._descriptors]

    def by_identifier(self, identifier: str) -> ProviderDescriptor:
        try:
            return self._by_identifier[_normalize(identifier)]
        except KeyError:
            raise ProviderNotFoundError(identifier) from None

    def subset(self, identifiers: Iterable[str]) -> tuple[ProviderDescriptor, ...]:
        """Descriptors for `identifiers`, in registry order.

        Every identifier must be registered; the first unknown one raises
        ProviderNotFoundError.
        """
        wanted = {self.by_identifier(identifier).identifier for identifier in identifiers}
        return tuple(descriptor for descriptor in self._descriptors if descriptor.identifier in wanted)


DEFAULT_REGISTRY = ProviderRegistry(
    [
        ipwho_is.DESCRIPTOR,
        ip_api_com.DESCRIPTOR,
        ipinfo_io.DESCRIPTOR,
        freeipapi_com.DESCRIPTOR,
        ifconfig_co.DESCRIPTOR,
        my_ip_io.DESCRIPTOR,
        ipapi_co.DESCRIPTOR,
        ip_api_io.DESCRIPTOR,
        ipbase_com.DESCRIPTOR,
        iplocate_io.DESCRIPTOR,
        ipleak_net.DESCRIPTOR,
        mullvad_net.DESCRIPTOR,
        # These require an API key and are skipped by default when none is configured.
        abstractapi_com.DESCRIPTOR,
        ipgeolocation_io.DESCRIPTOR,
        ipdata_co.DESCRIPTOR,
    ]
)
