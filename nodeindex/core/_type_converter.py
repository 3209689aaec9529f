import inspect
import json
from typing import Any, Union, get_args, get_origin, get_type_hints


class TypeConverter:
    @staticmethod
    def convert_value(value: Any, expected_type: Any) -> Any:
        if expected_type is None or value is None:
            return value
        origin = get_origin(expected_type)
        args = get_args(expected_type)

        # X | None and Union[...]: try each member in declaration order
        if origin is Union or (args and type(None) in args):
            for member in args:
                if member is type(None):
                    continue
                converted = TypeConverter.convert_value(value, member)
                if converted is not value:
                    return converted
            return value

        if isinstance(value, dict) and hasattr(expected_type, "from_dict"):
            return expected_type.from_dict(value)
        if isinstance(value, str) and hasattr(expected_type, "from_dict"):
            return expected_type.from_dict(json.loads(value))

        try:
            if expected_type is int and isinstance(value, (str, float)):
                return int(value)
            if expected_type is float and isinstance(value, (str, int)):
                if isinstance(value, bool):
                    return value
                return float(value)
            if expected_type is bool and isinstance(value, str):
                return value.strip().lower() in ("1", "true", "yes", "on")
            if expected_type is dict and isinstance(value, str):
                return json.loads(value)
        except (ValueError, TypeError):
            pass
        return value

    @staticmethod
    def convert_args(method: Any, args: dict) -> dict:
        sig = inspect.signature(method)
        hints = get_type_hints(method)
        converted_args: dict = {}
        for param_name in sig.parameters:
            if param_name in args:
                converted_args[param_name] = TypeConverter.convert_value(
                    args[param_name], hints.get(param_name, None)
                )
        return args | converted_args
