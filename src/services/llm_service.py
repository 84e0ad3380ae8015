"""
大语言模型服务
为日记用户提供简短的反思回复
配置了 API Key 时调用上游 chat/completions 接口，否则返回固定回复
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import httpx

from src.utils.config import Settings
from src.utils.errors import GatewayError
from src.utils.logger import logger

SYSTEM_PROMPT = "You are a supportive journaling companion. Keep responses brief and practical."

FALLBACK_REPLY = (
    "I hear you. Try capturing one small detail you can control today, and one gentle action you can take next. "
    "If you want, summarize the moment in one sentence and ask: \"What do I want to remember from this?\""
)


class CompletionStrategy(ABC):
    """回复生成策略基类"""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """
        根据用户输入生成回复

        Args:
            prompt: 用户输入

        Returns:
            回复文本
        """
        pass


class FallbackCompletion(CompletionStrategy):
    """未配置 API Key 时使用的固定回复"""

    async def complete(self, prompt: str) -> str:
        return FALLBACK_REPLY


class UpstreamCompletion(CompletionStrategy):
    """调用 OpenAI 兼容的 chat/completions 接口"""

    def __init__(self, api_key: str, api_base: str, model: str,
                 temperature: float = 0.7, timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        初始化上游调用

        Args:
            api_key: 上游 API Key
            api_base: 上游接口地址
            model: 模型名称
            temperature: 温度参数
            timeout: 请求超时时间（秒）
            transport: 自定义 httpx 传输层
        """
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self.transport = transport

    async def complete(self, prompt: str) -> str:
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.api_base}/chat/completions",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json"
                    },
                    json={
                        "model": self.model,
                        "messages": [
                            {"role": "system", "content": SYSTEM_PROMPT},
                            {"role": "user", "content": prompt}
                        ],
                        "temperature": self.temperature
                    }
                )
        except httpx.HTTPError as e:
            logger.error(f"LLM调用失败: {e}")
            raise GatewayError("OpenAI request failed") from e

        try:
            result = response.json()
        except ValueError:
            result = {"raw": response.text}

        if not response.is_success:
            logger.error(f"LLM API错误: {response.status_code} - {response.text}")
            raise GatewayError(self._error_message(result), data=result)

        return self._extract_text(result)

    def _error_message(self, result: Any) -> str:
        """从上游错误响应中提取错误消息"""
        error = result.get("error") if isinstance(result, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return "OpenAI request failed"

    def _extract_text(self, result: Dict[str, Any]) -> str:
        """提取第一条回复的文本内容"""
        try:
            content = result["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return ""
        return (content or "").strip()


class LLMService:
    """大语言模型服务"""

    def __init__(self, strategy: CompletionStrategy):
        """
        初始化LLM服务

        Args:
            strategy: 回复生成策略
        """
        self.strategy = strategy

    @classmethod
    def from_settings(cls, settings: Settings,
                      transport: Optional[httpx.AsyncBaseTransport] = None) -> "LLMService":
        """
        根据配置选择回复策略

        Args:
            settings: 应用配置
            transport: 自定义 httpx 传输层

        Returns:
            LLM服务实例
        """
        if not settings.llm_api_key:
            logger.info("未配置 LLM_API_KEY，使用固定回复")
            return cls(FallbackCompletion())

        return cls(UpstreamCompletion(
            api_key=settings.llm_api_key,
            api_base=settings.llm_api_base,
            model=settings.llm_model,
            timeout=settings.llm_timeout,
            transport=transport
        ))

    async def complete(self, prompt: str) -> str:
        """
        生成反思回复

        Args:
            prompt: 用户输入

        Returns:
            回复文本，上游返回空内容时使用固定回复
        """
        text = await self.strategy.complete(prompt)
        return text or FALLBACK_REPLY
