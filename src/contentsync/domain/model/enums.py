"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ContentKind(StrEnum):
    """Category of reconciled identity content."""

    USER = "user"
    MEDIUM = "medium"
    ORG1 = "org1"
    ORG2 = "org2"
    GROUP = "group"
    BELONG_ORG = "belong_org"
    BELONG_GROUP = "belong_group"


class JobPhase(StrEnum):
    """Phase of an import job in which a record was rejected."""

    TRANSFORMATION = "transformation"
    VALIDATION = "validation"
    PROVISIONING = "provisioning"


class RecordKind(StrEnum):
    REGISTER = "register"
    DELETION = "deletion"
    FAILURE = "failure"

    @property
    def is_successful(self) -> bool:
        return self is not RecordKind.FAILURE


class AttKey(StrEnum):
    """Generic attribute slots carried by every content kind."""

    ATT01 = "att01"
    ATT02 = "att02"
    ATT03 = "att03"
    ATT04 = "att04"
    ATT05 = "att05"
    ATT06 = "att06"
    ATT07 = "att07"
    ATT08 = "att08"
    ATT09 = "att09"
    ATT10 = "att10"
