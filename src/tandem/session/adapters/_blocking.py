# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Helpers for adapters built on blocking clients."""

from __future__ import annotations

import asyncio
import functools
from concurrent.futures import Executor
from typing import Any, Callable, TypeVar

T = TypeVar("T")


async def run_blocking(executor: Executor | None, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a blocking call on *executor* and await its result.

    When the awaiting task is cancelled (or its deadline expires) control
    returns to the caller at once. The thread cannot be interrupted, so the
    call runs to completion in the background and its result is dropped.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, functools.partial(func, *args, **kwargs))
