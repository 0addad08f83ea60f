# Copyright 2025 Google LLC
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
# ==============================================================================

import re

PHONE_NUMBER_PATTERN = re.compile(r"^(\d{3})(\d{3})(\d{4})$")
NON_LETTER_PATTERN = re.compile(r"[^a-zA-Z ]")


def format_phone_number(number) -> str:
    """
    Formats a raw ten digit phone number as (###) ###-####.

    Args:
        number (str | int): The phone number, unformatted.

    Returns:
        str: The formatted number, or the input as a string if it is not ten digits.
    """
    if number is None:
        return ""
    raw = str(number).strip()
    match = PHONE_NUMBER_PATTERN.match(raw)
    if match:
        return f"({match.group(1)}) {match.group(2)}-{match.group(3)}"
    return raw


def format_category(category: str) -> str:
    """Lower-cases a category name and replaces every non-letter with a space."""
    return NON_LETTER_PATTERN.sub(" ", category.lower())
