"""SmartPackage workflow definitions.

Each module (System-Out, System-In, System-Defective, System-Repair)
shares one booking lifecycle. What differs per module is the numeric
status code sent over the wire, the asset statuses involved, the
reference prefix and whether the header carries a location pair.
"""

from collections import namedtuple
from dataclasses import dataclass

from django.db import models

from registry.models import AssetStatus

from .exceptions import InvalidTransition


class Stage(models.TextChoices):
    DRAFT_NEW = "new", "Draft"
    HEADER_SAVED = "saved", "Header saved"
    FINALIZED = "finalized", "Finalized"
    CANCELED = "canceled", "Canceled"
    UNLOCKED = "unlocked", "Unlocked for edit"
    LOCKED = "locked", "Output confirmed"


class Event(models.TextChoices):
    GENERATE_REF = "generate_ref", "Generate reference"
    CONFIRM = "confirm", "Save header"
    SCAN = "scan", "Scan"
    RETURN = "return", "Return"
    FINALIZE = "finalize", "Finalize"
    UNLOCK = "unlock", "Unlock"
    CANCEL = "cancel", "Cancel"
    CONFIRM_OUTPUT = "confirm_output", "Confirm output"


# stage -> {event: next stage}
VALID_TRANSITIONS = {
    Stage.DRAFT_NEW: {
        Event.GENERATE_REF: Stage.DRAFT_NEW,
        Event.CONFIRM: Stage.HEADER_SAVED,
        Event.CANCEL: Stage.CANCELED,
    },
    Stage.HEADER_SAVED: {
        Event.CONFIRM: Stage.HEADER_SAVED,
        Event.SCAN: Stage.HEADER_SAVED,
        Event.RETURN: Stage.HEADER_SAVED,
        Event.FINALIZE: Stage.FINALIZED,
        Event.CANCEL: Stage.CANCELED,
    },
    Stage.UNLOCKED: {
        Event.CONFIRM: Stage.UNLOCKED,
        Event.SCAN: Stage.UNLOCKED,
        Event.RETURN: Stage.UNLOCKED,
        Event.FINALIZE: Stage.FINALIZED,
    },
    Stage.FINALIZED: {
        Event.UNLOCK: Stage.UNLOCKED,
        Event.CONFIRM_OUTPUT: Stage.LOCKED,
    },
    Stage.CANCELED: {},
    Stage.LOCKED: {},
}

OPEN_STAGES = (Stage.DRAFT_NEW, Stage.HEADER_SAVED, Stage.UNLOCKED)

BookingStatusCodes = namedtuple(
    "BookingStatusCodes",
    ["NEW", "SAVED", "FINALIZED", "CANCELED", "UNLOCKED", "LOCKED"],
)

_STAGE_ORDER = [
    Stage.DRAFT_NEW,
    Stage.HEADER_SAVED,
    Stage.FINALIZED,
    Stage.CANCELED,
    Stage.UNLOCKED,
    Stage.LOCKED,
]

STATUS_COLORS = {
    Stage.DRAFT_NEW: "default",
    Stage.HEADER_SAVED: "processing",
    Stage.FINALIZED: "success",
    Stage.CANCELED: "error",
    Stage.UNLOCKED: "warning",
    Stage.LOCKED: "purple",
}


@dataclass(frozen=True)
class Workflow:
    slug: str
    label: str
    base_code: int
    pre_states: tuple
    held_status: str
    confirmed_status: str
    ref_prefix: str
    requires_locations: bool = True
    # Asset statuses for which the asset's last destination must equal
    # the booking origin. Empty means no origin check.
    origin_checked_states: tuple = ()
    stamps_locations: bool = False

    @property
    def status(self):
        """Named wire codes, e.g. ``workflow.status.FINALIZED == "132"``."""
        return BookingStatusCodes(
            *(str(self.base_code + i) for i in range(len(_STAGE_ORDER)))
        )

    @property
    def group_name(self):
        return f"smartpackage.{self.slug}"

    @property
    def event_name(self):
        return f"{self.slug}:update"

    def code_for(self, stage):
        return str(self.base_code + _STAGE_ORDER.index(Stage(stage)))

    def stage_of(self, code):
        try:
            offset = int(code) - self.base_code
        except (TypeError, ValueError):
            offset = -1
        if not 0 <= offset < len(_STAGE_ORDER):
            raise ValueError(f"'{code}' is not a {self.slug} status code.")
        return _STAGE_ORDER[offset]

    def allowed_events(self, code):
        return [str(e) for e in VALID_TRANSITIONS[self.stage_of(code)]]

    def can(self, code, event):
        return Event(event) in VALID_TRANSITIONS[self.stage_of(code)]

    def next_status(self, code, event):
        """Return the status code ``event`` leads to from ``code``.

        Raises InvalidTransition if the event is not allowed.
        """
        stage = self.stage_of(code)
        target = VALID_TRANSITIONS[stage].get(Event(event))
        if target is None:
            raise InvalidTransition(
                code, str(event), self.allowed_events(code)
            )
        return self.code_for(target)

    def status_display(self, code):
        stage = self.stage_of(code)
        return {
            "is_status": code,
            "status_name": stage.label,
            "status_color": STATUS_COLORS[stage],
        }

    def requires_origin_check(self, asset_status):
        return asset_status in self.origin_checked_states


WORKFLOWS = {
    wf.slug: wf
    for wf in (
        Workflow(
            slug="systemout",
            label="System Out",
            base_code=120,
            pre_states=(AssetStatus.IN_STOCK,),
            held_status=AssetStatus.ISSUED,
            confirmed_status=AssetStatus.ISSUED,
            ref_prefix="OT",
            stamps_locations=True,
        ),
        Workflow(
            slug="systemin",
            label="System In",
            base_code=130,
            pre_states=(AssetStatus.ISSUED,),
            held_status=AssetStatus.RECEIVING,
            confirmed_status=AssetStatus.IN_STOCK,
            ref_prefix="RC",
            origin_checked_states=(AssetStatus.ISSUED,),
        ),
        Workflow(
            slug="systemdefective",
            label="System Defective",
            base_code=140,
            pre_states=(AssetStatus.IN_STOCK, AssetStatus.ISSUED),
            held_status=AssetStatus.DEFECTIVE,
            confirmed_status=AssetStatus.DEFECTIVE,
            ref_prefix="DF",
            origin_checked_states=(AssetStatus.ISSUED,),
        ),
        Workflow(
            slug="systemrepair",
            label="System Repair",
            base_code=150,
            pre_states=(AssetStatus.DEFECTIVE,),
            held_status=AssetStatus.ON_REPAIR,
            confirmed_status=AssetStatus.ON_REPAIR,
            ref_prefix="RP",
            requires_locations=False,
        ),
    )
}

WORKFLOW_CHOICES = [(wf.slug, wf.label) for wf in WORKFLOWS.values()]


def get_workflow(slug):
    """Return the Workflow for ``slug`` or raise KeyError."""
    return WORKFLOWS[slug]
