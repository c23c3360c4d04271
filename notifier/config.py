# Global knobs for the notifier package (read at call time)

# What a NotificationBlocker does with connections made while it was active:
#   "merge"   -> keep them, appended after the connections restored on release
#   "restore" -> put back the pre-block list; window connections are detached
BLOCKER_RELEASE_POLICY = "merge"

BLOCKER_RELEASE_POLICIES = ("merge", "restore")

# Subject.notify checks each argument against its declared payload type
# (only plain classes are checked; typing constructs and `object` pass).
CHECK_PAYLOAD_TYPES = True

# Some builtins expose no inspectable signature. True -> treat them as
# accepting the whole payload; False -> refuse to connect them.
UNKNOWN_SIGNATURE_IS_VARIADIC = True
