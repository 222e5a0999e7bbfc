"""
라이브 클라이언트 팩토리
플랫폼별 클라이언트를 생성하는 팩토리 패턴
"""

from typing import Dict

from .base_client import LiveClient
from .tiktok_client import TikTokLiveSession


class LiveClientFactory:
    """라이브 클라이언트 팩토리 클래스"""

    _platforms: Dict[str, type[LiveClient]] = {
        "tiktok": TikTokLiveSession,
    }

    @classmethod
    def create(
        cls,
        platform: str,
        username: str,
        **kwargs
    ) -> LiveClient:
        """
        플랫폼별 라이브 클라이언트 생성

        Args:
            platform: 플랫폼 이름 ("tiktok" 등)
            username: 방송인 핸들
            **kwargs: 플랫폼별 추가 설정 (on_event, sign_api_key 등)

        Returns:
            LiveClient 인스턴스

        Raises:
            ValueError: 지원하지 않는 플랫폼인 경우
        """
        if platform not in cls._platforms:
            supported = ", ".join(cls.get_supported_platforms())
            raise ValueError(
                f"지원하지 않는 플랫폼: {platform}. "
                f"지원 플랫폼: {supported}"
            )

        client_class = cls._platforms[platform]
        return client_class(username=username, **kwargs)

    @classmethod
    def register_platform(cls, platform: str, client_class: type[LiveClient]):
        """
        새로운 플랫폼 등록 (런타임에 플랫폼 추가 가능)

        Args:
            platform: 플랫폼 이름
            client_class: LiveClient를 상속한 클라이언트 클래스
        """
        if not issubclass(client_class, LiveClient):
            raise TypeError(
                f"client_class는 LiveClient를 상속해야 합니다. "
                f"현재: {client_class.__mro__}"
            )
        cls._platforms[platform] = client_class

    @classmethod
    def unregister_platform(cls, platform: str):
        cls._platforms.pop(platform, None)

    @classmethod
    def get_supported_platforms(cls) -> list[str]:
        """지원하는 플랫폼 목록 반환"""
        return list(cls._platforms.keys())
