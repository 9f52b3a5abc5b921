import logging
from typing import Dict, Optional

import aiohttp

from ..controller.interfaces import BuildInstantiator
from ..core.errors import InstantiationError
from ..core.models import Build, BuildRequest


class HttpBuildInstantiator(BuildInstantiator):
    """
    Sends build requests to the execution engine's instantiate endpoint.

    POST {base_url}/namespaces/{namespace}/buildconfigs/{name}/instantiate
    with the BuildRequest as JSON; the response body is the created Build.

    Failures are raised once, never retried here: the controller's work
    queue owns the retry policy.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.headers = headers or {}
        self._session = session
        self._owns_session = session is None
        self.logger = logging.getLogger(f"{__name__}.HttpBuildInstantiator")

    def instantiate_url(self, request: BuildRequest) -> str:
        return (
            f"{self.base_url}/namespaces/{request.namespace}"
            f"/buildconfigs/{request.name}/instantiate"
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers=self.headers
            )
            self._owns_session = True
        return self._session

    async def close(self):
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def instantiate(self, request: BuildRequest) -> Build:
        session = await self._get_session()
        url = self.instantiate_url(request)

        try:
            async with session.post(url, json=request.to_dict()) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise InstantiationError(
                        request.name,
                        f"HTTP {response.status}: {body.strip()}",
                        status_code=response.status
                    )
                data = await response.json()
        except aiohttp.ClientError as e:
            raise InstantiationError(request.name, str(e)) from e

        build = Build.from_dict(data)
        self.logger.debug(f"Instantiated build {build.name} from {request.namespace}/{request.name}")
        return build
