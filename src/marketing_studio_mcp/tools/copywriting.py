"""Copywriting tools — 3 tools on a FastMCP sub-server."""

from __future__ import annotations

import logging
from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field, ValidationError

from ..errors import make_tool_error
from ..generation import generate_sales_script, generate_video_script, handle_objection
from ..models.requests import SalesScriptRequest
from ..tracing import trace
from ..types import FreeText, ProductName, Tone, coerce_json_param

logger = logging.getLogger(__name__)
copy_server = FastMCP("copy")


@copy_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
@trace(name="sales_script", span_type="TOOL")
async def sales_script(
    product_name: ProductName,
    target_audience: Annotated[str, Field(
        min_length=1, description="Who the copy is for, e.g. 'Dueños de agencias de marketing'",
    )],
    key_benefits: Annotated[list[str] | str, Field(
        description="Benefits to highlight, e.g. ['Rápido', 'Económico']",
    )],
    tone: Tone = "professional",
    context: Annotated[str, Field(description="Optional extra context for the copywriter")] = "",
) -> dict:
    """Generate a persuasive sales structure: headline, body and call to action.

    Args:
        product_name: Product or service being sold.
        target_audience: Audience the copy addresses.
        key_benefits: One or more benefit strings.
        tone: professional, aggressive, empathetic or humorous.
        context: Optional free-text context.

    Returns:
        Dict with headline, body and cta (in that order), or a tool error.
    """
    try:
        request = SalesScriptRequest(
            product_name=product_name,
            target_audience=target_audience,
            key_benefits=coerce_json_param(key_benefits, list),
            tone=tone,
            context=context,
        )
    except ValidationError as exc:
        return make_tool_error(ValueError(_first_error(exc)))

    try:
        script = await generate_sales_script(request)
        return script.model_dump(mode="json", exclude={"kind"})
    except Exception as exc:
        return make_tool_error(exc)


@copy_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
@trace(name="objection_handle", span_type="TOOL")
async def objection_handle(
    objection: Annotated[str, Field(
        min_length=1, max_length=2000,
        description="What the customer said, e.g. 'Está muy caro, no tengo presupuesto'",
    )],
    context: Annotated[str, Field(description="Product or context, e.g. 'Software de Gestión'")] = "Producto General",
) -> dict:
    """Write a rebuttal for a customer objection, with the psychology behind it.

    Returns:
        Dict with rebuttal, psychology and closing_tip, or a tool error.
    """
    try:
        response = await handle_objection(objection, context)
        return response.model_dump(mode="json", exclude={"kind"})
    except Exception as exc:
        return make_tool_error(exc)


@copy_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
@trace(name="video_script", span_type="TOOL")
async def video_script(
    product: FreeText,
    goal: Annotated[str, Field(
        description="Video objective, e.g. 'Captar leads', 'Venta flash', 'Brand awareness'",
    )] = "Ventas Directas",
) -> dict:
    """Script a short video ad: hook, ordered scenes (visual, audio, duration) and CTA.

    Returns:
        Dict with hook, scenes and cta, or a tool error.
    """
    try:
        script = await generate_video_script(product, goal)
        return script.model_dump(mode="json", exclude={"kind"})
    except Exception as exc:
        return make_tool_error(exc)


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    field = ".".join(str(p) for p in err.get("loc", ())) or "input"
    return f"{field}: {err.get('msg', 'invalid value')}"
