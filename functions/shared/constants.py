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

# A procedure is covered once this many people are verified on it.
MIN_VERIFIED_PEOPLE = 2

# Coverage below this is critical.
CRITICAL_COVERAGE_THRESHOLD = 0.5
# Coverage at or above this is low risk; anything in between is high.
LOW_RISK_COVERAGE_THRESHOLD = 0.8

# Competency tag that verifies a person on every category.
WILDCARD_COMPETENCY = "all"

RECALCULATION_INTERVAL_DAYS = 7
ANALYSIS_REUSE_HOURS = 24

SECONDS_PER_HOUR = 60 * 60
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR

NO_PROCEDURES_GAP = "No documented procedures exist for this function"
NO_PROCEDURES_ACTION = "Create emergency runbooks immediately"
SINGLE_PERSON_GAP = "Single employee ({person_id}) has verified competency"
SINGLE_PERSON_ACTION = "Cross-train additional employee immediately"
NO_PERSON_GAP = "No employees have verified competency"
NO_PERSON_ACTION = "Assign and verify training for at least two employees"
