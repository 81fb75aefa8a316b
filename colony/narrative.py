from __future__ import annotations

"""
narrative.py

Mission goals and news headlines.

Three layers:
  * ``GeminiNarrativeService`` talks to the generative text service over httpx.
  * ``TemplateNarrator`` produces goals and headlines locally from templates.
    It is used when no API key is configured and while the remote service
    is cooling down after failures.
  * ``NarrativeDirector`` runs requests on background threads and hands the
    results back to the controller at tick boundaries. Every request is tagged
    with the session token current when it was issued; results from an older
    session are dropped.
"""

import json
import logging
import os
import queue
import random
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx

from terrain import BuildingType
from .models import AIGoal, ColonySnapshot, GoalMetric, NewsItem, Sentiment
from . import settings

logger = logging.getLogger("colony.narrative")
logger.addHandler(logging.NullHandler())


class NarrativeServiceError(RuntimeError):
    """The text service answered with something unusable."""


class ServiceUnavailableError(NarrativeServiceError):
    """Rate limited or server side failure; back off before retrying."""


# --------------------------------------------------------------------
# Parsing
# --------------------------------------------------------------------
GOAL_BUILDING_KINDS = [
    BuildingType.RESIDENTIAL,
    BuildingType.COMMERCIAL,
    BuildingType.INDUSTRIAL,
    BuildingType.AGRICULTURE,
    BuildingType.PARK,
    BuildingType.SOLAR_PANEL,
    BuildingType.ROAD,
]


def parse_goal(data: Any) -> Optional[AIGoal]:
    """Build an ``AIGoal`` from the service's JSON. Malformed data yields ``None``."""
    if not isinstance(data, dict) or not data:
        return None
    try:
        metric = GoalMetric(data["targetType"])
        target_value = int(data["targetValue"])
        reward = int(data["reward"])
        description = str(data["description"])
    except (KeyError, TypeError, ValueError, OverflowError):
        logger.warning("Discarding malformed goal payload: %r", data)
        return None

    building = None
    if metric is GoalMetric.BUILDING_COUNT:
        try:
            building = BuildingType(data.get("buildingType"))
        except ValueError:
            logger.warning("Goal names unknown building type %r", data.get("buildingType"))
            return None
        if building is BuildingType.NONE:
            return None
    return AIGoal(
        description=description,
        target_type=metric,
        target_value=target_value,
        reward=reward,
        building_type=building,
    )


def parse_news(data: Any) -> Optional[NewsItem]:
    if not isinstance(data, dict) or not data.get("text"):
        return None
    try:
        sentiment = Sentiment(data.get("type", "neutral"))
    except ValueError:
        sentiment = Sentiment.NEUTRAL
    return NewsItem(text=str(data["text"]), type=sentiment)


# --------------------------------------------------------------------
# Services
# --------------------------------------------------------------------
class NarrativeService:
    """Interface shared by the remote client and the local fallback."""

    remote = False

    def generate_goal(self, snapshot: ColonySnapshot) -> Optional[AIGoal]:
        raise NotImplementedError

    def generate_news(
        self, snapshot: ColonySnapshot, recent_action: Optional[str] = None
    ) -> Optional[NewsItem]:
        raise NotImplementedError

    def close(self) -> None:
        pass


GOAL_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "description": {
            "type": "STRING",
            "description": "A short, creative objective from Lunar Command. "
            "Focus on Helium-3 mining, life support stability and expansion.",
        },
        "targetType": {
            "type": "STRING",
            "enum": [metric.value for metric in GoalMetric],
        },
        "targetValue": {"type": "INTEGER"},
        "buildingType": {
            "type": "STRING",
            "enum": [kind.value for kind in GOAL_BUILDING_KINDS],
            "description": "Required if targetType is building_count.",
        },
        "reward": {"type": "INTEGER", "description": "Credit reward for completion."},
    },
    "required": ["description", "targetType", "targetValue", "reward"],
}

NEWS_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "text": {"type": "STRING", "description": "A one-sentence system alert or headline."},
        "type": {"type": "STRING", "enum": [s.value for s in Sentiment]},
    },
    "required": ["text", "type"],
}

GOAL_PROMPT = (
    "You are the colony's central AI. Generate a mission that pushes mining "
    "expansion and life support sustainability. Use terse engineering jargon "
    "(regolith slurry, biomass critical, fusion yield). Return JSON."
)

NEWS_PROMPT = (
    "Generate a short, atmospheric news headline for a lunar colony. Topics: "
    "He3 extraction yields, algae bloom efficiency, hull pressure variances, "
    "corporate transmissions, android maintenance."
)


class GeminiNarrativeService(NarrativeService):
    """Client for the ``generateContent`` REST endpoint."""

    remote = True

    def __init__(
        self,
        api_key: str,
        model: str = settings.GEMINI_MODEL,
        endpoint: str = settings.GEMINI_ENDPOINT,
        client: Optional[httpx.Client] = None,
        timeout: float = settings.SERVICE_TIMEOUT_SECONDS,
    ):
        if not api_key:
            raise ValueError("An API key is required")
        self.api_key = api_key
        self.model = model
        self.endpoint = endpoint.rstrip("/")
        self.client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_env(cls, **kwargs) -> Optional["GeminiNarrativeService"]:
        """Build a client from ``GEMINI_API_KEY``/``API_KEY``, or ``None`` if neither is set."""
        api_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")
        if not api_key:
            return None
        kwargs.setdefault("model", os.environ.get("COLONY_GEMINI_MODEL", settings.GEMINI_MODEL))
        return cls(api_key, **kwargs)

    @property
    def url(self) -> str:
        return f"{self.endpoint}/{self.model}:generateContent"

    def _generate(
        self, prompt: str, schema: Dict[str, Any], temperature: float
    ) -> Any:
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": schema,
                "temperature": temperature,
            },
        }
        try:
            response = self.client.post(
                self.url, headers={"x-goog-api-key": self.api_key}, json=body
            )
        except httpx.HTTPError as exc:
            raise NarrativeServiceError(f"Request failed: {exc}") from exc

        if response.status_code == 429 or response.status_code >= 500:
            raise ServiceUnavailableError(f"Service returned {response.status_code}")
        if response.status_code >= 400:
            raise NarrativeServiceError(f"Service returned {response.status_code}")

        try:
            payload = response.json()
            text = payload["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError):
            logger.debug("Response carried no text: %s", response.text[:200])
            return None
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError as exc:
            raise NarrativeServiceError("Service returned invalid JSON") from exc

    def generate_goal(self, snapshot: ColonySnapshot) -> Optional[AIGoal]:
        prompt = f"Current Lunar Base Stats:\n{snapshot.describe()}\n{GOAL_PROMPT}"
        return parse_goal(self._generate(prompt, GOAL_SCHEMA, 0.8))

    def generate_news(
        self, snapshot: ColonySnapshot, recent_action: Optional[str] = None
    ) -> Optional[NewsItem]:
        stats = snapshot.stats
        context = f"Base Stats - Crew: {stats.population}, Credits: {stats.money}, Sol: {stats.day}."
        if recent_action:
            context += f" Recent Action: {recent_action}"
        return parse_news(self._generate(f"{context}\n{NEWS_PROMPT}", NEWS_SCHEMA, 1.0))

    def close(self) -> None:
        self.client.close()


def _round_up(value: int, step: int) -> int:
    return ((value + step - 1) // step) * step


class TemplateNarrator(NarrativeService):
    """Deterministic given its RNG; targets scale with the current stats."""

    NEWS_TEMPLATES = {
        Sentiment.POSITIVE: [
            "He3 extraction yields up {pct}% on sol {day}.",
            "Algae bloom efficiency exceeds projections in hydroponics.",
            "Corporate transmission: shareholders commend colony growth.",
        ],
        Sentiment.NEUTRAL: [
            "Hull pressure variances within tolerance across all decks.",
            "Android maintenance cycle {day} completed on schedule.",
            "Regolith survey teams report quiet conditions on the rim.",
        ],
        Sentiment.NEGATIVE: [
            "Micrometeorite shower pits solar arrays on sol {day}.",
            "Supply shuttle delayed. Crew morale dipping.",
        ],
    }

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def generate_goal(self, snapshot: ColonySnapshot) -> Optional[AIGoal]:
        stats = snapshot.stats
        metric = self.rng.choice(list(GoalMetric))
        if metric is GoalMetric.MONEY:
            target = _round_up(stats.money + 1500, 500)
            return AIGoal(
                description=f"Fill the treasury to {target} credits for the next shuttle contract.",
                target_type=metric,
                target_value=target,
                reward=500,
            )
        if metric is GoalMetric.POPULATION:
            target = _round_up(max(20, stats.population + 25), 5)
            return AIGoal(
                description=f"House {target} colonists before the next supply window.",
                target_type=metric,
                target_value=target,
                reward=400,
            )
        if metric is GoalMetric.SCIENCE:
            target = _round_up(stats.science + 50, 10)
            return AIGoal(
                description=f"Accumulate {target} science for the research directorate.",
                target_type=metric,
                target_value=target,
                reward=300,
            )
        kind = self.rng.choice(GOAL_BUILDING_KINDS[:6])
        target = snapshot.building_counts.get(kind, 0) + 2
        return AIGoal(
            description=f"Expand the base to {target} {kind.value} modules.",
            target_type=metric,
            target_value=target,
            reward=250,
            building_type=kind,
        )

    def generate_news(
        self, snapshot: ColonySnapshot, recent_action: Optional[str] = None
    ) -> Optional[NewsItem]:
        stats = snapshot.stats
        if recent_action and self.rng.random() < 0.5:
            return NewsItem(text=f"Construction log: {recent_action}.", type=Sentiment.NEUTRAL)
        if stats.oxygen < settings.LOW_OXYGEN_ALERT_THRESHOLD or stats.food <= 0:
            sentiment = Sentiment.NEGATIVE
        elif stats.money > settings.INITIAL_MONEY:
            sentiment = Sentiment.POSITIVE
        else:
            sentiment = self.rng.choice(list(Sentiment))
        template = self.rng.choice(self.NEWS_TEMPLATES[sentiment])
        text = template.format(day=stats.day, pct=self.rng.randint(2, 15))
        return NewsItem(text=text, type=sentiment)


# --------------------------------------------------------------------
# Director
# --------------------------------------------------------------------
def spawn_daemon(target: Callable[..., None], *args: Any) -> None:
    threading.Thread(target=target, args=args, daemon=True).start()


@dataclass
class _Result:
    kind: str
    session: int
    value: Any = None
    remote: bool = False
    error: Optional[Exception] = None


@dataclass
class Delivery:
    """What ``NarrativeDirector.drain`` hands back to the controller."""

    goal: Optional[AIGoal] = None
    news: List[NewsItem] = field(default_factory=list)


class NarrativeDirector:
    def __init__(
        self,
        service: Optional[NarrativeService] = None,
        fallback: Optional[NarrativeService] = None,
        enabled: bool = True,
        spawn: Callable[..., None] = spawn_daemon,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.service = service
        self.fallback = fallback or TemplateNarrator()
        self.enabled = enabled
        self.spawn = spawn
        self.clock = clock

        self.session = 0
        self.goal_in_flight = False
        self.news_in_flight = False
        self.goal_retry_at: Optional[float] = None
        self.cooldown_until = 0.0
        self.failures = 0
        self._results: "queue.Queue[_Result]" = queue.Queue()

    # ---------------- Session ----------------
    def new_session(self) -> int:
        """Invalidate everything in flight and start accepting results for a new token."""
        self.session += 1
        self.goal_in_flight = False
        self.news_in_flight = False
        self.goal_retry_at = None
        return self.session

    def stop(self) -> None:
        self.new_session()

    def close(self) -> None:
        self.stop()
        if self.service is not None:
            self.service.close()

    # ---------------- Requests ----------------
    @property
    def in_cooldown(self) -> bool:
        return self.clock() < self.cooldown_until

    def _active_service(self) -> NarrativeService:
        if self.service is None or self.in_cooldown:
            return self.fallback
        return self.service

    def request_goal(self, snapshot: ColonySnapshot) -> bool:
        if not self.enabled or self.goal_in_flight:
            return False
        if self.goal_retry_at is not None and self.clock() < self.goal_retry_at:
            return False
        self.goal_in_flight = True
        self.goal_retry_at = None
        self.spawn(self._work, "goal", self.session, self._active_service(), snapshot, None)
        return True

    def maybe_request_news(
        self,
        snapshot: ColonySnapshot,
        rng: random.Random,
        recent_action: Optional[str] = None,
    ) -> bool:
        if not self.enabled or self.news_in_flight:
            return False
        if rng.random() >= settings.NEWS_REQUEST_CHANCE:
            return False
        self.news_in_flight = True
        self.spawn(
            self._work, "news", self.session, self._active_service(), snapshot, recent_action
        )
        return True

    def _work(
        self,
        kind: str,
        session: int,
        service: NarrativeService,
        snapshot: ColonySnapshot,
        recent_action: Optional[str],
    ) -> None:
        result = _Result(kind, session, remote=service.remote)
        try:
            if kind == "goal":
                result.value = service.generate_goal(snapshot)
            else:
                result.value = service.generate_news(snapshot, recent_action)
        except NarrativeServiceError as exc:
            logger.warning("%s request failed: %s", kind.capitalize(), exc)
            result.error = exc
        except Exception as exc:
            # The controller only learns a request finished through the queue
            logger.exception("%s request crashed", kind.capitalize())
            result.error = exc
        self._results.put(result)

    # ---------------- Results ----------------
    def _record_outcome(self, result: _Result) -> None:
        if not result.remote:
            return
        failed = result.error is not None or (result.kind == "goal" and result.value is None)
        if not failed:
            self.failures = 0
            return
        self.failures += 1
        if (
            isinstance(result.error, ServiceUnavailableError)
            or self.failures >= settings.SERVICE_MAX_FAILURES
        ):
            self.cooldown_until = self.clock() + settings.SERVICE_COOLDOWN_SECONDS
            self.failures = 0
            logger.warning(
                "Narrative service cooling down for %.0fs", settings.SERVICE_COOLDOWN_SECONDS
            )

    def drain(self) -> Delivery:
        """Apply every finished request. Call from the controller's thread only."""
        delivery = Delivery()
        while True:
            try:
                result = self._results.get_nowait()
            except queue.Empty:
                break
            if result.session != self.session:
                logger.debug("Dropping stale %s result from session %d", result.kind, result.session)
                continue
            self._record_outcome(result)
            if result.kind == "goal":
                self.goal_in_flight = False
                if result.value is None:
                    self.goal_retry_at = self.clock() + settings.GOAL_RETRY_SECONDS
                else:
                    delivery.goal = result.value
            else:
                self.news_in_flight = False
                if result.value is not None:
                    delivery.news.append(result.value)
        return delivery


__all__ = [
    "Delivery",
    "GeminiNarrativeService",
    "NarrativeDirector",
    "NarrativeService",
    "NarrativeServiceError",
    "ServiceUnavailableError",
    "TemplateNarrator",
    "parse_goal",
    "parse_news",
    "spawn_daemon",
]
