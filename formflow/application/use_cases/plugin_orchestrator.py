from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any

from formflow.application.exceptions import PluginExecutionError, PluginNotFoundError
from formflow.application.ports.plugin_registry import PluginRegistryPort
from formflow.domain.entities.blueprint import HookName, ServiceBlueprint
from formflow.domain.entities.conversation import Conversation
from formflow.domain.entities.plugin import PluginContext, PluginResult


@dataclass
class HookOutcome:
    slot_updates: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)


class PluginOrchestrator:
    def __init__(self, registry: PluginRegistryPort) -> None:
        self._registry = registry
        self._logger = logging.getLogger(__name__)

    async def execute_hook(
        self,
        hook: HookName,
        instance_ids: list[str],
        context: PluginContext,
        blueprint: ServiceBlueprint,
    ) -> HookOutcome:
        """
        Run `hook` for each plugin instance, in order, and merge what they return.

        Any failure aborts the whole batch: the exception propagates and the
        caller receives no slot updates at all. On key collisions the later
        instance wins. Metadata is keyed by instance id.
        """
        outcome = HookOutcome()

        for instance_id in instance_ids:
            plugin_config = blueprint.get_plugin(instance_id)
            if plugin_config is None:
                raise PluginNotFoundError(
                    f"Plugin instance '{instance_id}' referenced by {hook.value} "
                    f"is not configured in blueprint '{blueprint.id}'"
                )

            loaded = self._registry.get(plugin_config.id)
            if loaded is None:
                raise PluginNotFoundError(
                    f"Plugin '{plugin_config.id}' (instance '{instance_id}') is not loaded. "
                    f"Loaded plugins: {', '.join(self._registry.loaded_ids()) or '(none)'}"
                )

            if (
                hook == HookName.ON_FIELD_VALIDATED
                and plugin_config.trigger_on_field
                and plugin_config.trigger_on_field != context.field_id
            ):
                continue

            if not loaded.implements(hook):
                self._logger.debug(
                    "Plugin does not implement hook",
                    extra={"plugin": plugin_config.id, "hook": hook.value},
                )
                continue

            instance_context = PluginContext(
                service_id=context.service_id,
                conversation_id=context.conversation_id,
                data=dict(context.data),
                config=dict(plugin_config.config),
                field_id=context.field_id,
                field_value=context.field_value,
            )

            try:
                raw = loaded.hook(hook)(instance_context)
                if inspect.isawaitable(raw):
                    raw = await raw
                result = PluginResult.from_raw(raw)
            except Exception as e:
                self._logger.error(
                    "Plugin hook failed",
                    extra={
                        "conversation_id": context.conversation_id,
                        "plugin": plugin_config.id,
                        "hook": hook.value,
                        "error": str(e),
                    },
                )
                raise PluginExecutionError(
                    f"Plugin instance {instance_id} ({plugin_config.id}) failed during {hook.value}: {e}"
                ) from e

            outcome.slot_updates.update(result.slot_updates)
            if result.metadata:
                outcome.metadata[instance_id] = result.metadata

            self._logger.info(
                "Plugin hook executed",
                extra={
                    "conversation_id": context.conversation_id,
                    "plugin": plugin_config.id,
                    "hook": hook.value,
                    "slot_updates": sorted(result.slot_updates),
                },
            )

        return outcome

    async def run_on_start(self, conversation: Conversation, blueprint: ServiceBlueprint) -> HookOutcome:
        context = PluginContext(
            service_id=blueprint.id,
            conversation_id=conversation.id,
            data=dict(conversation.data),
        )
        return await self.execute_hook(
            HookName.ON_START, blueprint.hooks.instances_for(HookName.ON_START), context, blueprint
        )

    async def run_on_field_validated(
        self,
        conversation: Conversation,
        blueprint: ServiceBlueprint,
        data: dict[str, Any],
        field_id: str,
        field_value: Any,
    ) -> HookOutcome:
        context = PluginContext(
            service_id=blueprint.id,
            conversation_id=conversation.id,
            data=dict(data),
            field_id=field_id,
            field_value=field_value,
        )
        return await self.execute_hook(
            HookName.ON_FIELD_VALIDATED,
            blueprint.hooks.instances_for(HookName.ON_FIELD_VALIDATED),
            context,
            blueprint,
        )

    async def run_on_conversation_complete(
        self, conversation: Conversation, blueprint: ServiceBlueprint
    ) -> HookOutcome:
        context = PluginContext(
            service_id=blueprint.id,
            conversation_id=conversation.id,
            data=dict(conversation.data),
        )
        return await self.execute_hook(
            HookName.ON_CONVERSATION_COMPLETE,
            blueprint.hooks.instances_for(HookName.ON_CONVERSATION_COMPLETE),
            context,
            blueprint,
        )
