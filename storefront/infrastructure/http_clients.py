import httpx
import logging
from typing import Optional, List
from pydantic import ValidationError as SchemaError

from storefront.application.interfaces import CatalogService, IdentityService
from storefront.domain.models import Actor, CustomerContact, Product
from storefront.domain.exceptions import CatalogServiceError, IdentityServiceError

logger = logging.getLogger(__name__)

# Ошибки разбора ответа: не JSON, нет обязательного поля, неверный тип
_MALFORMED = (ValueError, KeyError, TypeError, SchemaError)


class HTTPCatalogClient(CatalogService):
    def __init__(self, base_url: str, api_token: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._base_url = base_url
        self._api_token = api_token
        self._transport = transport

    async def get_product(self, product_id: str) -> Optional[Product]:
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(
                    f"{self._base_url}/api/catalog/products/{product_id}",
                    headers={"X-API-Key": self._api_token},
                    timeout=10.0
                )

                if response.status_code == 200:
                    return Product(**response.json())
                elif response.status_code == 404:
                    return None
                else:
                    raise CatalogServiceError(f"Catalog service ошибка: {response.status_code}")

        except httpx.RequestError as e:
            logger.error(f"Catalog service ошибка подключения: {e}")
            raise CatalogServiceError(f"Catalog service не доступен: {str(e)}")
        except _MALFORMED as e:
            logger.error(f"Catalog service вернул некорректный ответ: {e}")
            raise CatalogServiceError(f"Catalog service некорректный ответ: {str(e)}")


class HTTPIdentityClient(IdentityService):
    """Identity сервис: текущий пользователь по токену, список админов, контакты покупателей.

    Любой некорректный ответ превращается в IdentityServiceError.
    """

    def __init__(self, base_url: str, api_token: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._base_url = base_url
        self._api_token = api_token
        self._transport = transport

    async def get_actor(self, access_token: str) -> Optional[Actor]:
        data = await self._get(
            "/api/users/me",
            headers={"Authorization": f"Bearer {access_token}"},
            allow_unauthorized=True,
        )
        if data is None:
            return None
        try:
            return Actor(id=data["id"], role=data["role"], full_name=data.get("full_name"))
        except _MALFORMED as e:
            raise self._malformed(e)

    async def list_admin_ids(self) -> List[str]:
        data = await self._get("/api/users", params={"role": "admin"})
        try:
            return [str(user["id"]) for user in data or []]
        except _MALFORMED as e:
            raise self._malformed(e)

    async def get_contacts(self, user_ids: List[str]) -> dict[str, CustomerContact]:
        if not user_ids:
            return {}
        data = await self._get("/api/users", params={"ids": ",".join(user_ids)})
        try:
            return {user["id"]: CustomerContact(**user) for user in data or []}
        except _MALFORMED as e:
            raise self._malformed(e)

    async def _get(self, path: str, headers: Optional[dict] = None, params: Optional[dict] = None,
                   allow_unauthorized: bool = False):
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(
                    f"{self._base_url}{path}",
                    headers={"X-API-Key": self._api_token, **(headers or {})},
                    params=params,
                    timeout=10.0
                )
        except httpx.RequestError as e:
            logger.error(f"Identity service ошибка подключения: {e}")
            raise IdentityServiceError(f"Identity service не доступен: {str(e)}")

        if response.status_code == 200:
            try:
                return response.json()
            except ValueError as e:
                raise self._malformed(e)
        if allow_unauthorized and response.status_code in (401, 403, 404):
            return None
        raise IdentityServiceError(f"Identity service ошибка: {response.status_code}")

    @staticmethod
    def _malformed(error: Exception) -> IdentityServiceError:
        logger.error(f"Identity service вернул некорректный ответ: {error}")
        return IdentityServiceError(f"Identity service некорректный ответ: {error}")
