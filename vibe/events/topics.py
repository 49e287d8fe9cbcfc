"""Event channel names."""

# Engine progress, payload: value (int 0..100)
PROGRESS = "progress"
# Host window regained focus, no payload
FOCUS = "focus"
# Job controller state transition, payload: state (JobState)
JOB_STATE = "job.state"

ALL_TOPICS = (PROGRESS, FOCUS, JOB_STATE)
