"""Modular system prompt rendering."""

import logging

from juicy.domain.entities.context import ModularPromptInfo, OptimizedContext
from juicy.domain.entities.intents import DetectedIntents
from juicy.domain.services.context_formatter import (
    format_attachment_summaries,
    format_summaries,
)
from juicy.domain.services.knowledge_modules import (
    estimate_modular_prompt_tokens,
    get_sub_module,
    loaded_modules,
)
from juicy.infrastructure.llm.templates import create_jinja_env

logger = logging.getLogger(__name__)


class PromptBuilder:
    """Renders the system prompt from knowledge module templates.

    The prompt is the base prompt (or a caller-supplied replacement), the
    modules selected by intent detection, the example interactions and
    finally the orchestrated context layers.
    """

    def __init__(self, use_sub_modules: bool = True) -> None:
        """Initialize the builder.

        Args:
            use_sub_modules: Load the transaction module as core plus
                selected sub-modules instead of the full module.
        """
        self._use_sub_modules = use_sub_modules
        self._env = create_jinja_env()
        self._context_template = self._env.get_template("context_sections.j2")

    def _render(self, name: str, **kwargs: object) -> str:
        return self._env.get_template(f"knowledge/{name}.j2").render(**kwargs).strip()

    def modular_prompt_info(self, intents: DetectedIntents) -> ModularPromptInfo:
        """Describe the prompt that would be built for the intents."""
        return ModularPromptInfo(
            estimated_tokens=estimate_modular_prompt_tokens(
                intents, self._use_sub_modules
            ),
            modules_loaded=tuple(loaded_modules(intents, self._use_sub_modules)),
            reasons=intents.reasons,
            sub_modules_enabled=self._use_sub_modules,
            transaction_sub_modules=intents.transaction_sub_modules,
        )

    def build_modular_prompt(
        self, intents: DetectedIntents, base_prompt: str | None = None
    ) -> str:
        """Render the knowledge part of the system prompt.

        Args:
            intents: Detected intents for the turn.
            base_prompt: Replacement for the base prompt.

        Returns:
            Rendered prompt text.
        """
        sections = [base_prompt.strip() if base_prompt else self._render("base")]
        if intents.needs_data_query:
            sections.append(self._render("data_query"))
        if intents.needs_hook_developer:
            sections.append(self._render("hook_developer"))
        if intents.needs_transaction:
            if self._use_sub_modules and intents.transaction_sub_modules:
                sections.append(self._render("transaction_core"))
                for module_id in intents.transaction_sub_modules:
                    module = get_sub_module(module_id)
                    if module is None:
                        logger.warning("Unknown transaction sub-module: %s", module_id)
                        continue
                    sections.append(self._render("transaction_sub_module", module=module))
            else:
                sections.append(self._render("transaction_full"))
        sections.append(self._render("examples"))
        return "\n\n".join(sections)

    def build_context_sections(
        self, context: OptimizedContext | None, summary_in_messages: bool = False
    ) -> str:
        """Render the orchestrated context layers.

        Args:
            context: Orchestrated context, or None.
            summary_in_messages: The summary was already placed into the
                first message and must not be repeated here.

        Returns:
            Rendered text (empty when there is nothing to add).
        """
        if context is None:
            return ""
        summary_text = None
        if context.summaries and not summary_in_messages:
            summary_text = format_summaries(context.summaries)
        return self._context_template.render(
            user_context=context.user_context,
            entity_state_text=context.entity_state_text,
            participant_context=context.participant_context,
            attachment_text=format_attachment_summaries(context.attachment_summaries),
            summary_text=summary_text,
        ).strip()

    def build(
        self,
        intents: DetectedIntents,
        context: OptimizedContext | None = None,
        base_prompt: str | None = None,
        summary_in_messages: bool = False,
    ) -> str:
        """Render the full system prompt.

        Args:
            intents: Detected intents for the turn.
            context: Orchestrated context, or None.
            base_prompt: Replacement for the base prompt.
            summary_in_messages: The summary was placed into the messages.

        Returns:
            System prompt text.
        """
        prompt = self.build_modular_prompt(intents, base_prompt)
        extra = self.build_context_sections(context, summary_in_messages)
        if extra:
            prompt = f"{prompt}\n\n{extra}"
        logger.debug(
            "System prompt built: %d chars, modules=%s",
            len(prompt),
            loaded_modules(intents, self._use_sub_modules),
        )
        return prompt
