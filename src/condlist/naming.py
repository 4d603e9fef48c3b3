"""Call templates the generator fills in for each block kind."""

from __future__ import annotations

from dataclasses import dataclass, fields


@dataclass(frozen=True)
class NamingPolicy:
    """``str.format`` templates for the runtime API the generated Lua calls.

    ``{key}`` and ``{args}`` receive already-quoted Lua strings, ``{name}`` the
    bare function name and ``{value}`` the probability digits.
    """

    fact_check: str
    toggle_on: str
    toggle_off: str
    effect_call: str
    condition_call: str
    probability_check: str

    @classmethod
    def from_dict(cls, data: dict) -> "NamingPolicy":
        """Build a policy from a validated NamingPolicy.v1.json document."""
        return cls(**{f.name: data[f.name] for f in fields(cls)})

    def to_dict(self) -> dict:
        data = {"schema_id": "NamingPolicy", "schema_version": "1.0"}
        data.update({f.name: getattr(self, f.name) for f in fields(self)})
        return data


# Placeholders each template may use; all of them are required.
TEMPLATE_PLACEHOLDERS = {
    "fact_check": {"key"},
    "toggle_on": {"key"},
    "toggle_off": {"key"},
    "effect_call": {"name", "args"},
    "condition_call": {"name", "args"},
    "probability_check": {"value"},
}


DEFAULT_NAMING = NamingPolicy(
    fact_check="db.actor:has_info({key})",
    toggle_on="db.actor:give_info_portion({key})",
    toggle_off="db.actor:disable_info_portion({key})",
    effect_call="xr_effects.{name}({args})",
    condition_call="xr_conditions.{name}({args})",
    probability_check="math.random(1, 100) > {value}",
)
