# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Engine - sequential step execution with condition branching.

Steps run one at a time. Condition steps jump to onSuccess/onFailure;
every other step advances to the next step in list order. A failed
required step halts the run and the partial result log is returned.
"""
import asyncio
import re
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Set

from .core.errors import (
    ConditionEvaluationError,
    DisabledError,
    NotFoundError,
    WorkflowExecutionError,
    sanitize_error_for_user,
)
from .core.logging import get_service_logger, log_event
from .condition_evaluator import evaluate_condition
from .executor import ConnectorExecutor
from .models import (
    InvocationContext,
    MCPResponse,
    StepResult,
    StepStatus,
    StepType,
    Workflow,
    WorkflowStep,
)
from .registry import ConnectorRegistry

logger = get_service_logger("workflow")

_TEMPLATE_VAR = re.compile(r"\{\{\s*([A-Za-z_][\w.]*)\s*\}\}")


class ChatProvider(Protocol):
    """Boundary to whatever model answers `ai` steps"""

    async def complete(self, prompt: str, context: InvocationContext) -> str:
        ...


ApprovalHandler = Callable[[WorkflowStep, InvocationContext], Awaitable[bool]]


def render_prompt(prompt: str, variables: Dict[str, Any]) -> str:
    """Replace {{name}} placeholders with workflow variables; unknown names are left as-is"""
    def replace(match: re.Match) -> str:
        value: Any = variables
        for part in match.group(1).split("."):
            if not isinstance(value, dict) or part not in value:
                return match.group(0)
            value = value[part]
        return str(value)

    return _TEMPLATE_VAR.sub(replace, prompt)


class WorkflowRun:
    """
    State of a single workflow execution.
    Tracks: variables, result log, per-step states
    """

    def __init__(self, workflow: Workflow, context: InvocationContext):
        self.workflow = workflow
        self.context = context
        self.variables: Dict[str, Any] = dict(workflow.variables)
        self.results: List[StepResult] = []
        self.step_states: Dict[str, StepStatus] = {
            step.id: StepStatus.PENDING for step in workflow.steps
        }
        self.steps_executed = 0
        self.repeated_steps = 0
        self.visited: Set[str] = set()

    def record(self, step: WorkflowStep, result: MCPResponse) -> None:
        self.results.append(StepResult(step_id=step.id, step_name=step.name, result=result))
        self.step_states[step.id] = StepStatus.COMPLETED if result.success else StepStatus.FAILED

    def cancel_pending(self) -> None:
        for step_id, state in self.step_states.items():
            if state == StepStatus.PENDING:
                self.step_states[step_id] = StepStatus.CANCELLED

    def result_log(self) -> List[Dict[str, Any]]:
        return [r.model_dump(by_alias=True) for r in self.results]

    def condition_scope(self) -> Dict[str, Any]:
        """Names visible to condition expressions"""
        log = self.result_log()
        return {
            **self.variables,
            "variables": self.variables,
            "results": log,
            "lastResult": log[-1] if log else None,
        }

    def metadata(self, status: str) -> Dict[str, Any]:
        return {
            "workflow": self.workflow.name,
            "workflowId": self.workflow.id,
            "stepStates": {k: v.value for k, v in self.step_states.items()},
            "status": status,
        }


class WorkflowEngine:
    """
    Runs registered workflows against the connector executor.

    Optional collaborators:
        ai_provider: answers `ai` steps; without one they fail
        approval_handler: decides `user` steps; without one they auto-approve
    """

    def __init__(
        self,
        registry: ConnectorRegistry,
        executor: ConnectorExecutor,
        ai_provider: Optional[ChatProvider] = None,
        approval_handler: Optional[ApprovalHandler] = None,
        max_steps: int = 100,
        default_step_timeout: int = 300000
    ):
        self.registry = registry
        self.executor = executor
        self.ai_provider = ai_provider
        self.approval_handler = approval_handler
        self.max_steps = max_steps
        self.default_step_timeout = default_step_timeout

    async def run_workflow(
        self,
        workflow_id: str,
        context: Optional[InvocationContext] = None
    ) -> MCPResponse:
        """
        Execute a workflow by id.

        Returns:
            MCPResponse with data.workflowResults (the step log, in execution
            order) and metadata {workflow, workflowId, stepStates, status}
        """
        context = context or InvocationContext()

        workflow = self.registry.get_workflow(workflow_id)
        if workflow is None:
            return NotFoundError("Workflow", workflow_id).to_response()
        if not workflow.enabled:
            return DisabledError("Workflow", workflow_id).to_response()

        run = WorkflowRun(workflow, context)
        positions = {step.id: i for i, step in enumerate(workflow.steps)}
        index: Optional[int] = 0 if workflow.steps else None

        log_event(logger, f"Executing workflow: {workflow.name}", workflow_id=workflow.id)

        while index is not None and index < len(workflow.steps):
            step = workflow.steps[index]
            # max_steps bounds revisits only
            if step.id in run.visited:
                run.repeated_steps += 1
                if run.repeated_steps > self.max_steps:
                    return self._halt(
                        run, f"Workflow '{workflow.name}' exceeded {self.max_steps} repeated steps"
                    )
            run.visited.add(step.id)

            run.step_states[step.id] = StepStatus.RUNNING
            log_event(logger, f"Executing step: {step.name}", "DEBUG",
                      workflow_id=workflow.id, step_id=step.id, step_type=step.type.value)

            try:
                if step.type == StepType.CONDITION:
                    outcome = self._evaluate(step, run)
                    run.record(step, MCPResponse.ok({"result": outcome}))
                    run.steps_executed += 1
                    target = step.on_success if outcome else step.on_failure
                    index = positions.get(target) if target else None
                    if target and index is None:
                        logger.warning(f"Step '{step.id}' points to unknown step '{target}'")
                    continue

                result = await self._execute_step(step, run)
            except Exception as e:
                logger.exception(f"Workflow {workflow.id} crashed at step {step.id}")
                result = MCPResponse.fail(
                    f"Workflow execution failed at step '{step.name}': {sanitize_error_for_user(e)}"
                )

            run.record(step, result)
            run.steps_executed += 1

            if not result.success and step.required:
                return self._halt(run, f"Required step '{step.name}' failed: {result.error}")

            index += 1

        log_event(logger, f"Workflow completed: {workflow.name}",
                  workflow_id=workflow.id, steps=run.steps_executed)
        return MCPResponse.ok(
            {"workflowResults": run.result_log()},
            metadata=run.metadata("completed")
        )

    def _halt(self, run: WorkflowRun, message: str) -> MCPResponse:
        run.cancel_pending()
        log_event(logger, message, "WARNING", workflow_id=run.workflow.id)
        return WorkflowExecutionError(
            message,
            data={"workflowResults": run.result_log()},
            details=run.metadata("failed")
        ).to_response()

    # ========================================================================
    # Step types
    # ========================================================================

    def _evaluate(self, step: WorkflowStep, run: WorkflowRun) -> bool:
        """Evaluation errors count as false"""
        try:
            return evaluate_condition(step.condition or "true", run.condition_scope())
        except ConditionEvaluationError as e:
            logger.warning(e.message, extra={"step_id": step.id})
            return False
        except Exception as e:
            logger.warning(f"Condition of step '{step.id}' failed: {e!r}", extra={"step_id": step.id})
            return False

    async def _execute_step(self, step: WorkflowStep, run: WorkflowRun) -> MCPResponse:
        if step.type == StepType.CONNECTOR:
            return await self._connector_step(step, run)
        if step.type == StepType.AI:
            return await self._ai_step(step, run)
        if step.type == StepType.USER:
            return await self._user_step(step, run)
        return MCPResponse.fail(f"Unknown step type: {step.type}")

    async def _connector_step(self, step: WorkflowStep, run: WorkflowRun) -> MCPResponse:
        if not step.connector_id:
            return MCPResponse.fail("No connector specified")

        params = {**run.variables, **step.params}
        return await self.executor.execute(step.connector_id, step.action, params, run.context)

    async def _ai_step(self, step: WorkflowStep, run: WorkflowRun) -> MCPResponse:
        if not step.prompt:
            return MCPResponse.fail("No prompt specified")
        if self.ai_provider is None:
            return MCPResponse.fail("AI step failed: no AI provider configured")

        prompt = render_prompt(step.prompt, run.variables)
        timeout_ms = step.timeout or self.default_step_timeout
        try:
            answer = await asyncio.wait_for(
                self.ai_provider.complete(prompt, run.context),
                timeout=timeout_ms / 1000.0
            )
        except asyncio.TimeoutError:
            return MCPResponse.fail(f"AI step timed out after {timeout_ms}ms",
                                    metadata={"errorType": "Timeout"})
        except Exception as e:
            return MCPResponse.fail(f"AI step failed: {sanitize_error_for_user(e)}")

        return MCPResponse.ok({"response": answer})

    async def _user_step(self, step: WorkflowStep, run: WorkflowRun) -> MCPResponse:
        if self.approval_handler is None:
            return MCPResponse.ok({"userInput": "approved"})

        timeout_ms = step.timeout or self.default_step_timeout
        try:
            approved = await asyncio.wait_for(
                self.approval_handler(step, run.context),
                timeout=timeout_ms / 1000.0
            )
        except asyncio.TimeoutError:
            return MCPResponse.fail(f"No user response within {timeout_ms}ms",
                                    metadata={"errorType": "Timeout"})
        except Exception as e:
            return MCPResponse.fail(f"User step failed: {sanitize_error_for_user(e)}")

        if not approved:
            return MCPResponse.fail(f"User rejected step '{step.name}'", data={"userInput": "rejected"})
        return MCPResponse.ok({"userInput": "approved"})
