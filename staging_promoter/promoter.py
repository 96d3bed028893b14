"""
Staging Promoter

Promotes open OSSRH staging repositories through the Central Publisher
Portal staging compatibility API once the build tool has uploaded release
artifacts.

Workflow: authenticate -> search open repositories -> promote each one.
The run never raises: every failure is logged and recorded in the returned
PromotionReport so the calling pipeline is never broken by a failed
promotion.
"""

import base64
import json
import logging
import re
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import requests

from promoter_config.schema import DEFAULT_BASE_URL, PublishingType


logger = logging.getLogger(__name__)


SEARCH_PATH = "/manual/search/repositories?state=open&ip=client"
PROMOTE_PATH = "/manual/upload/repository/{key}?publishing_type={publishing_type}"
REPOSITORY_KEY_RE = re.compile(r'"key"\s*:\s*"([^"]+)"')


# ============================================================================
# CUSTOM EXCEPTIONS (Exit Codes 40-49)
# ============================================================================

class PromotionError(Exception):
    """Base exception for all promotion errors."""
    exit_code = 49

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class RepositorySearchError(PromotionError):
    """Open repository search did not return 200."""
    exit_code = 40

    def __init__(self, status_code: int):
        super().__init__(f"Failed to search repositories, status code: {status_code}")
        self.status_code = status_code


class RepositoryPromotionError(PromotionError):
    """Promotion request for one repository could not be sent."""
    exit_code = 41

    def __init__(self, key: str, reason: str):
        super().__init__(f"Failed to upload staging repository {key}: {reason}")
        self.key = key


# ============================================================================
# ENUMS & DATA CLASSES
# ============================================================================

class PromotionStatus(Enum):
    """Overall outcome of one promotion run."""
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class PromotionOutcome:
    """Result of the promotion request for one staging repository."""
    key: str
    status_code: Optional[int] = None
    promoted: bool = False
    error: Optional[str] = None


@dataclass
class PromotionReport:
    """Summary of one promotion run."""
    base_url: str
    publishing_type: str
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    status: str = PromotionStatus.SKIPPED.value
    repositories_found: List[str] = field(default_factory=list)
    outcomes: List[PromotionOutcome] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def promoted_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.promoted)

    def finalize(self) -> None:
        """Derive the overall status from errors and per-repository outcomes."""
        failed = [o for o in self.outcomes if not o.promoted]
        if self.errors and not self.outcomes:
            self.status = PromotionStatus.FAILED.value
        elif failed and self.promoted_count == 0:
            self.status = PromotionStatus.FAILED.value
        elif failed or self.errors:
            self.status = PromotionStatus.PARTIAL.value
        else:
            self.status = PromotionStatus.SUCCESS.value

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)


# ============================================================================
# HELPERS
# ============================================================================

def build_bearer_token(username: str, password: str) -> str:
    """Return base64("username:password"), the portal's bearer token."""
    raw = f"{username}:{password}".encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def extract_repository_keys(body: str) -> List[str]:
    """
    Pull every `"key": "<value>"` value out of a search response body.

    The body is scanned as text, so any surrounding JSON shape is accepted.
    Keys are returned in the order they appear.
    """
    return REPOSITORY_KEY_RE.findall(body)


# ============================================================================
# PROMOTER
# ============================================================================

class StagingPromoter:
    """
    Finds the caller's open staging repositories and promotes each one.

    Requests are sequential and never retried.
    """

    def __init__(
        self,
        username: str,
        password: str,
        base_url: str = DEFAULT_BASE_URL,
        publishing_type: Union[PublishingType, str] = PublishingType.USER_MANAGED,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the promoter.

        Args:
            username: Portal user token name
            password: Portal user token password
            base_url: Base URL of the staging compatibility API
            publishing_type: publishing_type sent on each promotion
            timeout: Per-request timeout in seconds
            session: HTTP session to use (a new one is created when omitted)
        """
        self.base_url = base_url.rstrip("/")
        self.publishing_type = PublishingType(publishing_type).value
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        self.headers = {
            "Authorization": f"Bearer {build_bearer_token(username, password)}",
            "Content-Type": "application/json",
        }

    def __enter__(self) -> "StagingPromoter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    @property
    def search_url(self) -> str:
        return f"{self.base_url}{SEARCH_PATH}"

    def promote_url(self, key: str) -> str:
        path = PROMOTE_PATH.format(key=key, publishing_type=self.publishing_type)
        return f"{self.base_url}{path}"

    def _send(self, method: str, url: str, body: str = "") -> requests.Response:
        return self.session.request(
            method,
            url,
            headers=self.headers,
            data=body or None,
            timeout=self.timeout,
        )

    def search_open_repositories(self) -> List[str]:
        """
        Return the keys of the caller's open staging repositories.

        Raises:
            RepositorySearchError: search returned a status other than 200
            requests.RequestException: transport failure
        """
        response = self._send("GET", self.search_url)
        if response.status_code != 200:
            raise RepositorySearchError(response.status_code)

        keys = extract_repository_keys(response.text)
        logger.debug(f"Search matched {len(keys)} open staging repositories")
        return keys

    def promote_repository(self, key: str) -> PromotionOutcome:
        """
        Request promotion of one staging repository.

        The response status is recorded but not validated.

        Raises:
            RepositoryPromotionError: the request could not be built or sent
        """
        try:
            response = self._send("POST", self.promote_url(key), body="{}")
        except requests.RequestException as e:
            raise RepositoryPromotionError(key, str(e)) from e

        return PromotionOutcome(key=key, status_code=response.status_code, promoted=True)

    def promote_all(self) -> PromotionReport:
        """
        Search open staging repositories and promote every one found.

        Never raises. A failed search aborts the run; a failed promotion is
        logged and the next repository is still attempted.
        """
        started = time.monotonic()
        report = PromotionReport(base_url=self.base_url, publishing_type=self.publishing_type)

        try:
            keys = self.search_open_repositories()
            report.repositories_found = list(keys)
            if not keys:
                logger.info("No open staging repositories found")

            for key in keys:
                try:
                    outcome = self.promote_repository(key)
                    logger.info(f"Upload staging repository: {key} (status: {outcome.status_code})")
                except RepositoryPromotionError as e:
                    outcome = PromotionOutcome(key=key, error=str(e))
                    logger.error(str(e))
                except Exception as e:
                    failure = RepositoryPromotionError(key, str(e))
                    outcome = PromotionOutcome(key=key, error=str(failure))
                    logger.error(str(failure))
                report.outcomes.append(outcome)

        except RepositorySearchError as e:
            logger.error(str(e))
            report.errors.append(str(e))
        except Exception as e:
            message = f"Failed to upload staging repositories: {e}"
            logger.error(message)
            report.errors.append(message)

        report.finalize()
        report.duration_seconds = round(time.monotonic() - started, 3)
        return report
