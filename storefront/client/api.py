# storefront/client/api.py
import logging
from typing import Dict, List, Optional, Tuple

import httpx

from storefront.client.session import AuthSession

logger = logging.getLogger(__name__)

# (filename, content, content type) as accepted by httpx for multipart uploads
ImageFile = Tuple[str, bytes, str]


class ApiError(Exception):
    def __init__(self, status_code: int, message: str, errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors or {}

    def field_errors(self, field: str) -> List[str]:
        return self.errors.get(field, [])


class StorefrontClient:
    """Thin synchronous client for the storefront API.

    The bearer token comes from the injected AuthSession; a 401 on any call
    other than login clears the session.
    """

    def __init__(self, base_url: str, session: Optional[AuthSession] = None,
                 transport: Optional[httpx.BaseTransport] = None, timeout: float = 10.0):
        self.session = session or AuthSession()
        self._http = httpx.Client(
            base_url=base_url,
            transport=transport,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ---- transport ----

    def _request(self, method: str, path: str, **kwargs) -> dict:
        headers = {**self.session.auth_headers(), **kwargs.pop("headers", {})}
        try:
            response = self._http.request(method, path, headers=headers, **kwargs)
        except httpx.RequestError as e:
            logger.error("Request %s %s failed: %s", method, path, e)
            raise ApiError(0, f"Could not reach the server: {e}") from e

        if response.status_code == 401 and path != "/login":
            logger.info("Session rejected by the server, clearing credentials")
            self.session.clear()

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error:
            message = body.get("message") or body.get("detail") or response.reason_phrase
            raise ApiError(response.status_code, str(message), body.get("errors"))
        return body

    @staticmethod
    def _product_form(fields: dict, image: Optional[ImageFile], image_url: Optional[str]):
        data = {k: str(v) for k, v in fields.items() if v is not None}
        if image_url:
            data["image_url"] = image_url
        files = {"image": image} if image else None
        return data, files

    # ---- auth ----

    def login(self, email: str, password: str) -> dict:
        body = self._request("POST", "/login", json={"email": email, "password": password})
        self.session.start(body["access_token"], body["user"])
        return body["user"]

    def register(self, name: str, email: str, password: str, password_confirmation: str) -> dict:
        body = self._request("POST", "/register", json={
            "name": name,
            "email": email,
            "password": password,
            "password_confirmation": password_confirmation,
        })
        self.session.start(body["access_token"], body["user"])
        return body["user"]

    def logout(self) -> None:
        if not self.session.is_authenticated:
            return
        try:
            self._request("POST", "/logout")
        finally:
            self.session.clear()

    def current_user(self) -> dict:
        user = self._request("GET", "/user")["data"]
        self.session.refresh(user)
        return user

    def update_profile(self, name: str, email: str, password: Optional[str] = None) -> dict:
        payload = {"name": name, "email": email, "password": password}
        user = self._request("PUT", "/user", json=payload)["user"]
        self.session.refresh(user)
        return user

    # ---- products ----

    def list_products(self, q: Optional[str] = None, category_id: Optional[int] = None) -> List[dict]:
        params = {k: v for k, v in {"q": q, "category_id": category_id}.items() if v is not None}
        return self._request("GET", "/products", params=params)["data"]

    def get_product(self, product_id: int) -> dict:
        return self._request("GET", f"/products/{product_id}")["data"]

    def create_product(self, fields: dict, image: Optional[ImageFile] = None, image_url: Optional[str] = None) -> dict:
        data, files = self._product_form(fields, image, image_url)
        return self._request("POST", "/products", data=data, files=files)["product"]

    def update_product(self, product_id: int, fields: dict, image: Optional[ImageFile] = None,
                       image_url: Optional[str] = None) -> dict:
        data, files = self._product_form(fields, image, image_url)
        return self._request("PUT", f"/products/{product_id}", data=data, files=files)["product"]

    def delete_product(self, product_id: int) -> str:
        return self._request("DELETE", f"/products/{product_id}")["message"]

    # ---- categories ----

    def list_categories(self) -> List[dict]:
        return self._request("GET", "/categories")["data"]

    def get_category(self, category_id: int) -> dict:
        return self._request("GET", f"/categories/{category_id}")["data"]

    def create_category(self, category_name: str) -> dict:
        return self._request("POST", "/categories", json={"category_name": category_name})["category"]

    def update_category(self, category_id: int, category_name: str) -> dict:
        body = self._request("PUT", f"/categories/{category_id}", json={"category_name": category_name})
        return body["category"]

    def delete_category(self, category_id: int) -> str:
        return self._request("DELETE", f"/categories/{category_id}")["message"]

    # ---- users (admin) ----

    def list_users(self, q: Optional[str] = None, role: Optional[str] = None) -> List[dict]:
        params = {k: v for k, v in {"q": q, "role": role}.items() if v is not None}
        return self._request("GET", "/users", params=params)["data"]

    def create_user(self, name: str, email: str, password: str, role: str) -> dict:
        payload = {"name": name, "email": email, "password": password, "role": role}
        return self._request("POST", "/users", json=payload)["user"]

    def update_user(self, user_id: int, name: str, email: str, role: str, password: Optional[str] = None) -> dict:
        payload = {"name": name, "email": email, "role": role, "password": password}
        return self._request("PUT", f"/users/{user_id}", json=payload)["user"]

    def delete_user(self, user_id: int) -> str:
        return self._request("DELETE", f"/users/{user_id}")["message"]
