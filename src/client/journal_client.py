"""
日记接口客户端
封装登录、资料、日记和AI对话接口，非2xx响应抛出 ApiError
"""

from typing import Any, Dict, List, Optional
import httpx


class ApiError(Exception):
    """接口调用失败"""

    def __init__(self, message: str, status: int, data: Any = None):
        self.message = message
        self.status = status
        self.data = data
        super().__init__(f"{status}: {message}")


class JournalClient:
    """日记接口客户端"""

    def __init__(self, base_url: str = "", token: Optional[str] = None,
                 http_client: Optional[httpx.Client] = None, timeout: float = 30.0):
        """
        初始化客户端

        Args:
            base_url: 服务地址，例如 http://localhost:8000
            token: 已有的访问令牌
            http_client: 自定义 httpx 客户端，传入时忽略 base_url
            timeout: 请求超时时间（秒）
        """
        self.token = token
        self.http = http_client or httpx.Client(base_url=base_url, timeout=timeout)

    def _request(self, method: str, path: str, body: Any = None,
                 params: Optional[Dict[str, Any]] = None) -> Any:
        """
        发送请求

        Args:
            method: HTTP方法
            path: 接口路径
            body: JSON请求体
            params: 查询参数

        Returns:
            解析后的响应数据
        """
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        kwargs: Dict[str, Any] = {"headers": headers}
        if body is not None:
            kwargs["json"] = body
        if params:
            kwargs["params"] = params

        response = self.http.request(method, path, **kwargs)

        if "application/json" in response.headers.get("content-type", ""):
            data = response.json()
        else:
            data = response.text

        if not response.is_success:
            message = data.get("message") if isinstance(data, dict) else None
            raise ApiError(message or response.reason_phrase, response.status_code, data)
        return data

    def login(self, email: str, name: Optional[str] = None) -> Dict[str, Any]:
        """登录并保存令牌"""
        result = self._request("POST", "/auth/login", {"email": email, "name": name})
        if result.get("token"):
            self.token = result["token"]
        return result

    def logout(self) -> Dict[str, Any]:
        """撤销服务端令牌并清除本地令牌"""
        try:
            return self._request("POST", "/auth/logout")
        finally:
            self.token = None

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/me")

    def update_me(self, patch: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", "/auth/me", patch)

    def list_entries(self, sort: str = "-date", limit: Optional[int] = None) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {}
        if sort:
            params["sort"] = sort
        if limit:
            params["limit"] = limit
        return self._request("GET", "/entries", params=params)

    def create_entry(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/entries", data)

    def update_entry(self, entry_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", f"/entries/{entry_id}", data)

    def delete_entry(self, entry_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/entries/{entry_id}")

    def chat(self, prompt: str) -> str:
        """请求AI反思回复，返回回复文本"""
        return self._request("POST", "/ai/chat", {"prompt": prompt})["data"]

    def close(self):
        self.http.close()
