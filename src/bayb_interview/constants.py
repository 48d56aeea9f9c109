"""Interview constants shared across the SDK.

These values are referenced by the question models, the session state
machine and the persistence adapter.  They mirror conventions encoded in
the question catalog under ``data/``.

The completion delay can be overridden via an environment variable so
that hosts can tune the hand-off without code changes.
"""

import os

# Question ids that mark the first and last entries of the catalog.
INTRO_QID = "intro"
COMPLETION_QID = "completion"

# Section-intro markers are recognised by this id suffix (e.g. "q6_intro").
SECTION_INTRO_SUFFIX = "_intro"

# Seconds between entering the completed state and notifying the host.
# Overridable via BAYB_COMPLETION_DELAY_SECONDS.
COMPLETION_DELAY_SECONDS = float(os.getenv("BAYB_COMPLETION_DELAY_SECONDS", "3.0"))

# Key layout used by the key-value answer store.
ANSWERS_KEY = "user:{user_id}:onboarding_answers"
FIELD_KEY = "user:{user_id}:onboarding:{field}"
COMPLETE_KEY = "user:{user_id}:onboarding_complete"
COMPLETED_AT_KEY = "user:{user_id}:onboarding_completed_at"
# Every key above starts with this prefix
ONBOARDING_PREFIX = "user:{user_id}:onboarding"
