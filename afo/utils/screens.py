"""Shape validation for discovery agent responses.

Each validator takes a decoded JSON value and returns a normalized dict, or
raises ValueError describing the first field with the wrong shape. They plug
into parse_json_object as its ``validate`` callback.
"""

from afo.variants import FlowVariant


def _require_str(data: dict, field: str) -> None:
    if not isinstance(data.get(field), str):
        raise ValueError(f"'{field}' must be a string.")


def _require_bool(data: dict, field: str) -> None:
    if not isinstance(data.get(field), bool):
        raise ValueError(f"'{field}' must be a boolean.")


def _require_str_list(data: dict, field: str) -> None:
    value = data.get(field)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"'{field}' must be a list of strings.")


def _require_object(data) -> None:
    if not isinstance(data, dict):
        raise ValueError("Response must be a JSON object.")


def _check_lists(data: dict, fields: tuple[str, str]) -> None:
    for field in fields:
        _require_str_list(data, field)


def validate_dynamic_screen(data, variant: FlowVariant) -> dict:
    """Validate a dynamic discovery screen against the variant's modality.

    Required: question (str), the two suggestion lists (lists of str) and
    readyForAffirmations (bool). reflectiveStatement is optional and defaults
    to "".

    Variants with ``accepts_alternate_shape`` also accept the other modality's
    lists; those are then copied into the canonical field names, so the result
    carries both.
    """
    _require_object(data)
    _require_str(data, "question")
    _require_bool(data, "readyForAffirmations")
    if "reflectiveStatement" in data and not isinstance(data["reflectiveStatement"], str):
        raise ValueError("'reflectiveStatement' must be a string.")

    initial, expanded = variant.list_fields
    try:
        _check_lists(data, variant.list_fields)
    except ValueError:
        if not variant.accepts_alternate_shape:
            raise
        _check_lists(data, variant.alternate_list_fields)
        alt_initial, alt_expanded = variant.alternate_list_fields
        data[initial] = data[alt_initial]
        data[expanded] = data[alt_expanded]

    data.setdefault("reflectiveStatement", "")
    return data


def validate_discovery_step(data, variant: FlowVariant) -> dict:
    """Validate a step-based discovery response: skip, question and chip lists."""
    _require_object(data)
    _require_bool(data, "skip")
    _require_str(data, "question")
    _check_lists(data, variant.list_fields)
    initial, expanded = variant.list_fields
    return {
        "skip": data["skip"],
        "question": data["question"],
        initial: data[initial],
        expanded: data[expanded],
    }


def validate_first_screen(data) -> dict:
    """Validate first-screen fragments. Any question in the payload is ignored."""
    _require_object(data)
    _check_lists(data, ("initialFragments", "expandedFragments"))
    return {
        "initialFragments": data["initialFragments"],
        "expandedFragments": data["expandedFragments"],
    }


def empty_screen(variant: FlowVariant, error: str) -> dict:
    """Error result for a dynamic screen: every data field present and empty."""
    initial, expanded = variant.list_fields
    return {
        "reflectiveStatement": "",
        "question": "",
        initial: [],
        expanded: [],
        "readyForAffirmations": False,
        "error": error,
    }


def empty_step(variant: FlowVariant, error: str) -> dict:
    initial, expanded = variant.list_fields
    return {"skip": False, "question": "", initial: [], expanded: [], "error": error}
