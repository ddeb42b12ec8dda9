import copy
from typing import Any, Dict, Mapping

from raworc_mcp.core.errors import ValidationFailure
from raworc_mcp.tools.registry import Param, ParamType, Tool


def validate_arguments(tool: Tool, arguments: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Check raw ``tools/call`` arguments against the tool's declared params.

    Returns the keyword arguments for the handler. Unknown keys are dropped,
    a JSON null counts as absent, and absent optional params take their
    declared default when there is one. Raises ValidationFailure on the first
    offending parameter; nothing is called before this returns.
    """
    validated: Dict[str, Any] = {}
    for param in tool.params:
        value = arguments.get(param.name)
        if value is None:
            if param.required:
                raise ValidationFailure.missing(param.name, param.type.value)
            if param.default is not None:
                validated[param.name] = copy.deepcopy(param.default)
            continue
        validated[param.name] = _check(param, value)
    return validated


def _check(param: Param, value: Any) -> Any:
    value = _coerce(param.type, value, param.name)

    if param.type is ParamType.ARRAY and param.items is not None:
        value = [_coerce(param.items, item, f"{param.name}[{i}]") for i, item in enumerate(value)]

    if param.enum is not None and value not in param.enum:
        raise ValidationFailure.wrong_value(param.name, "one of " + ", ".join(param.enum))

    if param.minimum is not None and value < param.minimum:
        raise ValidationFailure.wrong_value(param.name, f"{param.type.value} >= {param.minimum}")

    if param.min_length is not None and len(value) < param.min_length:
        expected = "non-empty string" if param.min_length == 1 else f"length >= {param.min_length}"
        raise ValidationFailure.wrong_value(param.name, expected)

    return value


def _coerce(expected: ParamType, value: Any, name: str) -> Any:
    # bool is a subclass of int, so it is excluded explicitly from numbers
    if expected is ParamType.STRING:
        ok = isinstance(value, str)
    elif expected is ParamType.BOOLEAN:
        ok = isinstance(value, bool)
    elif expected is ParamType.INTEGER:
        if isinstance(value, float) and value.is_integer():
            return int(value)
        ok = isinstance(value, int) and not isinstance(value, bool)
    elif expected is ParamType.NUMBER:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    elif expected is ParamType.OBJECT:
        ok = isinstance(value, dict)
    elif expected is ParamType.ARRAY:
        ok = isinstance(value, list)
    else:
        ok = False

    if not ok:
        raise ValidationFailure.wrong_type(name, expected.value)
    return value
