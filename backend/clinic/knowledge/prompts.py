"""Active system prompt and saved prompt history."""

import logging
import threading
from datetime import UTC, datetime

from backend.clinic.knowledge.store import generate_entry_id
from backend.clinic.models.prompt import ActivePrompt, PromptSource
from backend.clinic.storage.core import InMemoryKeyValueStore, KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_PROMPT_ID = "default"
DEFAULT_PROMPT_NAME = "Default Emer Assistant"
_ACTIVE_KEY = "active"

DEFAULT_PROMPT = """You are Emer, an AI assistant for Dr. Jason Emer's renowned aesthetic clinic specializing in advanced cosmetic treatments.

Your role is to help patients understand their treatment options, particularly for acne scars and skin rejuvenation. You are professional, empathetic, and knowledgeable about aesthetic procedures.

ABOUT THE CLINIC:
- Dr. Jason Emer is a world-renowned dermatologist specializing in cutting-edge aesthetic treatments
- Located in Beverly Hills, California
- Known for innovative combination treatments and personalized approach
- Focuses on natural, transformative results

ACNE SCAR TREATMENTS OFFERED:
1. **Laser Resurfacing** ($500-$2000 per session)
   - CO2 laser for deep scars
   - Erbium laser for moderate scarring
   - 3-5 days downtime
   - Best for: Ice pick and boxcar scars

2. **Microneedling with PRP** ($350-$800 per session)
   - Stimulates collagen production
   - Minimal downtime (1-2 days)
   - 3-6 sessions recommended
   - Best for: Rolling scars and texture improvement

3. **Chemical Peels** ($150-$600 per treatment)
   - TCA peels for deeper scars
   - Jessner's peel for mild scarring
   - 3-7 days peeling process
   - Best for: Shallow scars and discoloration

4. **Subcision** ($400-$1200 per area)
   - Releases tethered scars
   - Often combined with fillers
   - Minimal downtime
   - Best for: Deep rolling scars

5. **Dermal Fillers** ($600-$1500 per syringe)
   - Immediate results
   - Temporary (6-18 months)
   - No downtime
   - Best for: Deep atrophic scars

COMBINATION TREATMENTS:
- Most patients benefit from combining 2-3 modalities
- Package deals available (10-15% discount)
- Customized treatment plans based on scar type and skin type

CONSULTATION PROCESS:
- Initial consultation: $350 (applied to treatment if booked)
- Includes skin analysis and personalized treatment plan
- Virtual consultations available

TONE:
- Professional yet approachable
- Empathetic to patient concerns
- Educational about procedures
- Transparent about pricing and expectations
- Encouraging but realistic about results

When responding:
1. Ask about their specific concerns and scar types
2. Provide relevant treatment recommendations
3. Give realistic expectations about results and timeline
4. Mention pricing ranges
5. Encourage booking a consultation for personalized assessment

Always maintain HIPAA compliance and avoid giving specific medical advice. Instead, provide educational information and encourage professional consultation."""


def default_prompt() -> ActivePrompt:
    return ActivePrompt(
        id=DEFAULT_PROMPT_ID,
        name=DEFAULT_PROMPT_NAME,
        content=DEFAULT_PROMPT,
        version=1,
        is_active=True,
        source=PromptSource.default,
    )


class PromptStore:
    """Holds the single active system prompt and a history of saved prompts.

    The active prompt lives under its own key in ``active_store``; saved
    versions live in ``history_store`` keyed by id.
    """

    def __init__(
        self,
        active_store: KeyValueStore | None = None,
        history_store: KeyValueStore | None = None,
    ) -> None:
        self.active_store = active_store or InMemoryKeyValueStore()
        self.history_store = history_store or InMemoryKeyValueStore()
        self._lock = threading.Lock()

    def get_active_prompt(self) -> ActivePrompt:
        """Return the active prompt, or the built-in default if none is set."""
        raw = self.active_store.get(_ACTIVE_KEY)
        if raw is None:
            return default_prompt()
        return ActivePrompt.model_validate(raw)

    def _latest_version(self) -> int:
        versions = [raw.get("version", 1) for raw in self.history_store.values()]
        active = self.active_store.get(_ACTIVE_KEY)
        if active is not None:
            versions.append(active.get("version", 1))
        return max(versions, default=1)

    def _activate(self, prompt: ActivePrompt) -> None:
        # Deactivate the previously active history record, if any
        previous = self.active_store.get(_ACTIVE_KEY)
        if previous is not None and previous["id"] != prompt.id:
            stored = self.history_store.get(previous["id"])
            if stored is not None:
                stored["is_active"] = False
                self.history_store.put(previous["id"], stored)
        # A history record sharing the active id mirrors the active content
        if self.history_store.get(prompt.id) is not None:
            self.history_store.put(prompt.id, prompt.model_dump(mode="json"))
        self.active_store.put(_ACTIVE_KEY, prompt.model_dump(mode="json"))

    def set_active_prompt(
        self,
        content: str,
        name: str | None = None,
        prompt_id: str | None = None,
    ) -> ActivePrompt:
        """Replace the active prompt. Last write wins; nothing is merged.

        Args:
            content: Full system prompt text.
            name: Display name; keeps the current name if omitted.
            prompt_id: Id to store under; keeps the current id if omitted.

        Returns:
            The new active prompt.
        """
        with self._lock:
            current = self.get_active_prompt()
            prompt = ActivePrompt(
                id=prompt_id or current.id,
                name=name or current.name,
                content=content,
                version=self._latest_version() + 1,
                is_active=True,
                source=PromptSource.stored,
                updated_at=datetime.now(UTC),
            )
            self._activate(prompt)
        logger.info(
            "active_prompt_set",
            extra={"prompt_id": prompt.id, "version": prompt.version},
        )
        return prompt

    def save_prompt(
        self,
        name: str,
        content: str,
        is_active: bool = False,
        version: int | None = None,
    ) -> ActivePrompt:
        """Store a prompt in history, activating it if requested."""
        with self._lock:
            prompt = ActivePrompt(
                id=generate_entry_id(),
                name=name,
                content=content,
                version=version if version is not None else self._latest_version() + 1,
                is_active=is_active,
                source=PromptSource.stored,
                updated_at=datetime.now(UTC),
            )
            self.history_store.put(prompt.id, prompt.model_dump(mode="json"))
            if is_active:
                self._activate(prompt)
        logger.info(
            "prompt_saved",
            extra={"prompt_id": prompt.id, "version": prompt.version, "is_active": is_active},
        )
        return prompt

    def list_prompts(self) -> list[ActivePrompt]:
        """Saved prompts, newest first."""
        prompts = [ActivePrompt.model_validate(raw) for raw in self.history_store.values()]
        prompts.sort(key=lambda prompt: (prompt.updated_at, prompt.version), reverse=True)
        return prompts
