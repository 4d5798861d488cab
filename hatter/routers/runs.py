import logging
from typing import Any

from fastapi import APIRouter, Depends

from hatter.automate.executor import CommandExecutor
from hatter.automate.generator import CommandScriptGenerator
from hatter.automate.validation import validate_commands
from hatter.config import ALLOW_EVALUATE, get_browser_config
from hatter.models.run import GenerateScriptResponse, RunTestRequest, RunTestResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tests"])


def get_executor() -> CommandExecutor:
    return CommandExecutor(browser_config=get_browser_config(), allow_evaluate=ALLOW_EVALUATE)


def _generate_script(request: RunTestRequest, executor: CommandExecutor) -> str:
    generator = CommandScriptGenerator(
        request.commands,
        test_name=request.test_name,
        test_description=request.test_description,
        browser_config=executor.browser_config,
        timings=executor.timings,
        markers=executor.markers,
        allow_evaluate=executor.allow_evaluate,
    )
    return generator.generate_script_content()


@router.post("/run-test", response_model=RunTestResponse, response_model_exclude_none=True)
async def run_test(
    request: RunTestRequest,
    executor: CommandExecutor = Depends(get_executor),
) -> Any:
    validate_commands(request.commands)

    script = _generate_script(request, executor)
    report = await executor.run(request.commands)

    logger.info(
        f"Test '{request.test_name}' finished - success: {report.success}, "
        f"time: {report.execution_time}ms"
    )
    return RunTestResponse(
        success=report.success,
        error=report.error,
        execution_time=report.execution_time,
        screenshots=report.screenshots,
        script=script,
    )


@router.post("/generate-script", response_model=GenerateScriptResponse)
async def generate_script(
    request: RunTestRequest,
    executor: CommandExecutor = Depends(get_executor),
) -> Any:
    validate_commands(request.commands)
    return GenerateScriptResponse(success=True, script=_generate_script(request, executor))
