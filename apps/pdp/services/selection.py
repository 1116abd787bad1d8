"""
Resolution of a (possibly partial) attribute selection to one combination.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from django.db import models
from django.http import QueryDict

from apps.pdp.conf import VALID_AUTO_PICK_STRATEGIES, engine_setting
from apps.pdp.domain import CombinationMatrix, VariantCombination

from .attribute_dictionary import AttributeDictionary

logger = logging.getLogger(__name__)


class ResolutionStatus(models.TextChoices):
    UNRESOLVED = 'unresolved', 'Seçim bekleniyor'
    RESOLVED = 'resolved', 'Seçildi'
    UNAVAILABLE = 'unavailable', 'Mevcut değil'


@dataclass(frozen=True)
class ResolutionState:
    """
    Outcome of matching a selection against the matrix.

    ``remaining_options`` lists, for every dimension not yet chosen, the
    values still reachable from the current matches.
    """
    status: str
    selection: Dict[str, str] = field(default_factory=dict)
    combination: Optional[VariantCombination] = None
    match_count: int = 0
    missing_dimensions: Tuple[str, ...] = ()
    remaining_options: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def is_resolved(self):
        return self.status == ResolutionStatus.RESOLVED

    @property
    def is_unresolved(self):
        return self.status == ResolutionStatus.UNRESOLVED

    @property
    def is_unavailable(self):
        return self.status == ResolutionStatus.UNAVAILABLE

    @property
    def variant_id(self):
        return self.combination.id if self.combination else None


@dataclass(frozen=True)
class OptionState:
    """One selectable value of a dimension, as seen from the current selection."""
    value: str
    label: str
    color_hex: Optional[str] = None
    image_ref: Optional[str] = None
    selectable: bool = False
    in_stock: bool = False
    is_selected: bool = False


@dataclass(frozen=True)
class Reconciliation:
    selection: Dict[str, str]
    cleared: Tuple[str, ...] = ()
    auto_picked: Dict[str, str] = field(default_factory=dict)


class SelectionResolver:
    """
    Maps selections to combinations for one product snapshot.
    Pure: it never mutates the matrix or the selections handed to it.
    """

    def __init__(
        self,
        dictionary: AttributeDictionary,
        matrix: CombinationMatrix,
        auto_pick_strategy: Optional[str] = None,
    ):
        self.dictionary = dictionary
        self.matrix = matrix
        strategy = auto_pick_strategy or engine_setting('AUTO_PICK_STRATEGY')
        if strategy not in VALID_AUTO_PICK_STRATEGIES:
            raise ValueError('Unknown auto pick strategy %r' % strategy)
        self.auto_pick_strategy = strategy

    def resolve(self, selection: Mapping[str, str]) -> ResolutionState:
        """
        Resolve a selection.

        A combination matches when it carries the selected value for every
        selected dimension; unselected dimensions are wildcards.

        Returns:
            RESOLVED when exactly one combination matches, UNRESOLVED when
            several do, UNAVAILABLE when none does. A product without any
            combination resolves to the base product (combination None).
        """
        selection = dict(selection)
        missing = tuple(self.dictionary.missing_dimensions(selection))

        if not self.matrix:
            return ResolutionState(
                status=ResolutionStatus.RESOLVED,
                selection=selection,
                missing_dimensions=missing,
            )

        matches = self.matrix.filter(selection)

        if len(matches) == 1:
            return ResolutionState(
                status=ResolutionStatus.RESOLVED,
                selection=selection,
                combination=matches[0],
                match_count=1,
                missing_dimensions=missing,
            )

        if len(matches) > 1:
            return ResolutionState(
                status=ResolutionStatus.UNRESOLVED,
                selection=selection,
                match_count=len(matches),
                missing_dimensions=missing,
                remaining_options={
                    key: self.matrix.values_for(key, matches) for key in missing
                },
            )

        return ResolutionState(
            status=ResolutionStatus.UNAVAILABLE,
            selection=selection,
            missing_dimensions=missing,
        )

    def option_states(self, selection: Mapping[str, str]) -> Dict[str, List[OptionState]]:
        """
        Availability of every dimension value given the other selections.

        A value is ``selectable`` when some combination carries it together
        with the other chosen values, and ``in_stock`` when one of those has
        stock. Out-of-stock values stay selectable so their detail is visible.
        """
        result = {}
        for dimension in self.dictionary:
            others = {k: v for k, v in selection.items() if k != dimension.key}
            candidates = self.matrix.filter(others)
            current = selection.get(dimension.key)

            options = []
            for attribute_value in dimension.values:
                carrying = [
                    c for c in candidates
                    if c.attributes.get(dimension.key) == attribute_value.value
                ]
                image_ref = next((c.image_ref for c in carrying if c.image_ref), None)
                options.append(OptionState(
                    value=attribute_value.value,
                    label=attribute_value.get_display_value(),
                    color_hex=attribute_value.color_hex,
                    image_ref=image_ref,
                    selectable=bool(carrying),
                    in_stock=any(c.is_in_stock for c in carrying),
                    is_selected=attribute_value.value == current,
                ))
            result[dimension.key] = options
        return result

    def reconcile(self, selection: Mapping[str, str], key: str, value: str) -> Reconciliation:
        """
        Apply a new choice and repair the rest of the selection.

        Earlier choices are kept, in order, only while a combination with the
        new choice and the choices kept so far still exists. When something
        had to be cleared the configured auto-pick strategy may fill the
        cleared dimensions from in-stock combinations.
        """
        updated = {key: value}
        cleared = []
        for previous_key, previous_value in selection.items():
            if previous_key == key:
                continue
            trial = dict(updated)
            trial[previous_key] = previous_value
            if self.matrix.filter(trial):
                updated[previous_key] = previous_value
            else:
                cleared.append(previous_key)

        auto_picked = {}
        if cleared:
            logger.debug('Choice %s=%s cleared stale selections %s', key, value, cleared)
            auto_picked = self._auto_pick(updated, cleared)
            updated.update(auto_picked)

        return Reconciliation(
            selection=self._ordered(updated),
            cleared=tuple(k for k in cleared if k not in auto_picked),
            auto_picked=auto_picked,
        )

    def _auto_pick(self, selection: Dict[str, str], cleared: List[str]) -> Dict[str, str]:
        if self.auto_pick_strategy == 'none':
            return {}

        candidates = [c for c in self.matrix.filter(selection) if c.is_in_stock]
        if not candidates:
            return {}

        picked = {}
        if self.auto_pick_strategy == 'first':
            first = candidates[0]
            for cleared_key in cleared:
                if cleared_key in first.attributes:
                    picked[cleared_key] = first.attributes[cleared_key]
        else:
            narrowed = dict(selection)
            for cleared_key in cleared:
                values = self.matrix.values_for(cleared_key, candidates)
                if len(values) != 1:
                    continue
                picked[cleared_key] = values[0]
                narrowed[cleared_key] = values[0]
                candidates = [c for c in candidates if c.matches(narrowed)]

        if picked:
            logger.debug('Auto-picked %s (%s strategy)', picked, self.auto_pick_strategy)
        return picked

    def selection_for_variant(self, variant_id) -> Optional[Dict[str, str]]:
        """Full selection pointing at one combination, or None if unknown."""
        combination = self.matrix.get(variant_id)
        if combination is None:
            return None
        return self._ordered(dict(combination.attributes))

    def _ordered(self, selection: Dict[str, str]) -> Dict[str, str]:
        """Selection in dimension order; keys outside the dictionary go last."""
        ordered = {k: selection[k] for k in self.dictionary.keys if k in selection}
        for k, v in selection.items():
            ordered.setdefault(k, v)
        return ordered


def selection_to_query(selection: Mapping[str, str]) -> str:
    """?renk=siyah&beden=M form of a selection, for shareable URLs."""
    query = QueryDict(mutable=True)
    for key, value in selection.items():
        query[key] = value
    return query.urlencode()


def selection_from_query(dictionary: AttributeDictionary, params) -> Dict[str, str]:
    """Read a selection back from query parameters, ignoring unrelated ones."""
    if isinstance(params, str):
        params = QueryDict(params)
    relevant = {}
    for key in params:
        if dictionary.canonical_key(key) is None:
            continue
        relevant[key] = params.get(key)
    return dictionary.normalize_selection(relevant)
