"""
Generation service for UISketch: prompt -> provider -> extraction -> validation
"""
import logging
from typing import Optional

from config.ai_models import SINGLE_TEMPERATURE, VARIATIONS_TEMPERATURE, EDIT_TEMPERATURE
from models.generation import (
    GenerationInput,
    EditInput,
    GenerationResult,
    VariationsGenerationResult,
)
from models.mockup import FailureCode
from prompts.builder import build_generation_prompts, build_edit_prompts
from services.ai_client import AIClient, ProviderError, TransientProviderError, get_ai_client
from services.code_validator import validate_code, filter_valid
from services.html_extractor import extract_code, extract_variations

logger = logging.getLogger(__name__)


class GenerationService:
    """
    Every method returns a result object instead of raising. The one exception
    is TransientProviderError, which propagates so the job runner can retry.
    """

    def __init__(self, ai_client: Optional[AIClient] = None):
        self.ai_client = ai_client or get_ai_client()

    async def generate_ui_code(self, data: GenerationInput) -> GenerationResult:
        """Generate a single mockup fragment."""
        try:
            prompts = build_generation_prompts(data.ui_library, data.device_type, 1, data.prompt)
            response = await self.ai_client.generate_text(
                prompts.system, prompts.user, SINGLE_TEMPERATURE, data.model.value
            )

            code = extract_code(response.text)
            validation = validate_code(code)
            if not validation.valid:
                logger.warning(f"Generated code rejected: {validation.error}")
                return GenerationResult(
                    success=False,
                    error=f"Generated code validation failed: {validation.error}",
                    error_code=FailureCode.VALIDATION_FAILED,
                    tokens_used=response.tokens_used,
                )

            return GenerationResult(success=True, code=code, tokens_used=response.tokens_used)

        except TransientProviderError:
            raise
        except ProviderError as e:
            logger.error(f"Provider failed during generation: {e}", exc_info=True)
            return GenerationResult(success=False, error=str(e), error_code=FailureCode.PROVIDER_FAILED)
        except Exception as e:
            logger.error(f"Unexpected error during generation: {e}", exc_info=True)
            return GenerationResult(
                success=False,
                error="An unexpected error occurred during generation",
                error_code=FailureCode.UNEXPECTED,
            )

    async def generate_ui_variations(self, data: GenerationInput) -> VariationsGenerationResult:
        """
        Generate three variations in one provider call and keep the ones that
        pass validation. Fails only when none survive.
        """
        try:
            prompts = build_generation_prompts(data.ui_library, data.device_type, 3, data.prompt)
            response = await self.ai_client.generate_text(
                prompts.system, prompts.user, VARIATIONS_TEMPERATURE, data.model.value
            )

            fragments = extract_variations(response.text)
            valid = filter_valid(fragments)
            logger.info(f"Extracted {len(fragments)} variation(s), {len(valid)} passed validation")

            if not fragments:
                return VariationsGenerationResult(
                    success=False,
                    error="No variations generated: the response contained no code blocks",
                    error_code=FailureCode.VALIDATION_FAILED,
                    tokens_used=response.tokens_used,
                )
            if not valid:
                return VariationsGenerationResult(
                    success=False,
                    error="No valid variations were generated",
                    error_code=FailureCode.VALIDATION_FAILED,
                    tokens_used=response.tokens_used,
                )

            return VariationsGenerationResult(success=True, variations=valid, tokens_used=response.tokens_used)

        except TransientProviderError:
            raise
        except ProviderError as e:
            logger.error(f"Provider failed during variation generation: {e}", exc_info=True)
            return VariationsGenerationResult(success=False, error=str(e), error_code=FailureCode.PROVIDER_FAILED)
        except Exception as e:
            logger.error(f"Unexpected error during variation generation: {e}", exc_info=True)
            return VariationsGenerationResult(
                success=False,
                error="An unexpected error occurred during generation",
                error_code=FailureCode.UNEXPECTED,
            )

    async def edit_ui_code(self, data: EditInput) -> GenerationResult:
        """Apply a natural-language edit to existing HTML."""
        try:
            prompts = build_edit_prompts(data.current_html, data.edit_prompt)
            response = await self.ai_client.generate_text(
                prompts.system, prompts.user, EDIT_TEMPERATURE, data.model.value
            )

            code = extract_code(response.text)
            validation = validate_code(code)
            if not validation.valid:
                logger.warning(f"Edited code rejected: {validation.error}")
                return GenerationResult(
                    success=False,
                    error=f"Edited code validation failed: {validation.error}",
                    error_code=FailureCode.VALIDATION_FAILED,
                    tokens_used=response.tokens_used,
                )

            return GenerationResult(success=True, code=code, tokens_used=response.tokens_used)

        except TransientProviderError:
            raise
        except ProviderError as e:
            logger.error(f"Provider failed during edit: {e}", exc_info=True)
            return GenerationResult(success=False, error=str(e), error_code=FailureCode.PROVIDER_FAILED)
        except Exception as e:
            logger.error(f"Unexpected error during edit: {e}", exc_info=True)
            return GenerationResult(
                success=False,
                error="An unexpected error occurred during editing",
                error_code=FailureCode.UNEXPECTED,
            )
