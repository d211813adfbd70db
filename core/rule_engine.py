"""
Rule Engine / Dialogue Router for Elite65.

An ordered, first-match dispatch table. Each rule pairs a predicate (regex or
keyword set) with a response generator, and may publish a topic or emit an
action. ORDER IS PART OF THE CONTRACT: a general rule placed before a
specific one shadows it.

Topic state is threaded explicitly: ``route`` takes the previous topic and
returns the next one (or None to leave it untouched).
"""
import random
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from core.logger import get_logger
from core.models import BotAction, GameContext

logger = get_logger("rule_engine")

ResponseFn = Callable[[GameContext, Optional[re.Match]], str]
ActionFn = Callable[[GameContext, Optional[re.Match]], Optional[BotAction]]

TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9]+")


@dataclass
class Rule:
    """One row of the dispatch table."""
    name: str
    response: ResponseFn
    pattern: Optional[re.Pattern] = None
    keywords: Tuple[str, ...] = ()
    required_topic: Optional[str] = None
    set_topic: Optional[str] = None
    action: Optional[ActionFn] = None

    def __post_init__(self):
        if self.pattern is None and not self.keywords:
            raise ValueError(f"Rule '{self.name}' needs a pattern or keywords")
        if isinstance(self.pattern, str):
            self.pattern = re.compile(self.pattern, re.IGNORECASE)
        # keywords are matched as token runs: "level up" -> ("level", "up")
        self._keyword_tokens = [
            tuple(t for t in TOKEN_SPLIT_RE.split(k.lower()) if t)
            for k in self.keywords
        ]

    def gate_passes(self, last_topic: Optional[str]) -> bool:
        return self.required_topic is None or self.required_topic == last_topic

    def matches(self, query: str, tokens: Sequence[str]) -> Tuple[bool, Optional[re.Match]]:
        if self.pattern is not None:
            match = self.pattern.search(query)
            return match is not None, match
        for phrase in self._keyword_tokens:
            if phrase and _contains_run(tokens, phrase):
                return True, None
        return False, None


@dataclass
class QueryResult:
    text: str
    new_topic: Optional[str] = None
    action: Optional[BotAction] = None
    rule: Optional[str] = None       # name of the rule that fired


def tokenize(query: str) -> List[str]:
    """Lowercase tokens split on every non-alphanumeric run."""
    return [t for t in TOKEN_SPLIT_RE.split((query or "").lower()) if t]


def _contains_run(tokens: Sequence[str], phrase: Sequence[str]) -> bool:
    width = len(phrase)
    for start in range(len(tokens) - width + 1):
        if tuple(tokens[start:start + width]) == tuple(phrase):
            return True
    return False


@dataclass
class RuleEngine:
    """
    First-match router.

    Args:
        rules: ordered rule table
        fallbacks: pool of replies used when nothing matches
        rng: random source for fallback picks (inject a seeded one in tests)
    """
    rules: List[Rule]
    fallbacks: Sequence[str]
    rng: random.Random = field(default_factory=random.Random)

    def route(
        self,
        query: str,
        context: Optional[GameContext] = None,
        last_topic: Optional[str] = ""
    ) -> QueryResult:
        context = context or GameContext()
        query = query or ""
        tokens = tokenize(query)

        for rule in self.rules:
            if not rule.gate_passes(last_topic):
                continue

            matched, match = rule.matches(query, tokens)
            if not matched:
                continue

            logger.debug("Rule '%s' matched query %r", rule.name, query)
            text = rule.response(context, match)
            action = rule.action(context, match) if rule.action else None
            return QueryResult(
                text=text,
                new_topic=rule.set_topic,
                action=action,
                rule=rule.name,
            )

        logger.debug("No rule matched query %r", query)
        return QueryResult(text=self.rng.choice(list(self.fallbacks)))

    def first_match(self, query: str, last_topic: Optional[str] = "") -> Optional[str]:
        """Name of the rule that would fire, without running any generator."""
        tokens = tokenize(query)
        for rule in self.rules:
            if rule.gate_passes(last_topic) and rule.matches(query, tokens)[0]:
                return rule.name
        return None

    def audit_shadowing(
        self,
        samples: Dict[str, Sequence[str]],
        last_topic: Optional[str] = ""
    ) -> List[Tuple[str, str, Optional[str]]]:
        """
        Check sample utterances reach the rule they were written for.

        Args:
            samples: rule name -> utterances that should reach it
            last_topic: topic in effect while probing

        Returns:
            (expected rule, utterance, rule that actually fired) per mismatch
        """
        mismatches = []
        for expected, utterances in samples.items():
            for utterance in utterances:
                actual = self.first_match(utterance, last_topic)
                if actual != expected:
                    mismatches.append((expected, utterance, actual))
        return mismatches
