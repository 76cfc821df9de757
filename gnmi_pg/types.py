# Copyright 2020 Nokia
# Licensed under the Apache License 2.0.
# SPDX-License-Identifier: Apache-2.0

import time
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field


class TLSInit(BaseModel):
    insecure: bool = False
    skip_verify: bool = False
    target_hostname: str = ""
    root_ca: str = ""
    cert: str = ""
    key: str = ""


class UserCredentials(BaseModel):
    username: str
    password: str = ""


class CallContext(BaseModel):
    """Deadline and outgoing metadata for a single RPC.

    Instances are immutable; helpers return updated copies.
    """

    model_config = ConfigDict(frozen=True)

    deadline: float
    metadata: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def with_timeout(cls, seconds: float) -> "CallContext":
        return cls(deadline=time.monotonic() + seconds)

    def remaining(self) -> float:
        return max(0.0, self.deadline - time.monotonic())

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.deadline


class ClientConfig(BaseModel):
    addr: str
    tls: TLSInit = Field(default_factory=TLSInit)
    credentials: UserCredentials
    timeout: float = 10.0

    @property
    def target(self) -> str:
        from gnmi_pg.gnmilib import resolve_target

        return resolve_target(self.addr)


class GetParams(BaseModel):
    prefix: str = ""
    xpaths: List[str] = Field(min_length=1)
    encoding: int = Field(default=4, ge=0, le=4)
    dtype: int = Field(default=0, ge=0, le=3)
