"""Size limits for the assembled issue body.

Byte limits are measured on the UTF-8 encoding, character limits in code points.
"""

# Whole body, including the trailing Context-Hash line. Kept well under the
# tracker's 65 KiB hard limit.
BODY_CEILING_BYTES = 40 * 1024

TITLE_MAX_CHARS = 80
HEADER_MAX_CHARS = 300
DESCRIPTION_MAX_BYTES = 2 * 1024
JS_ERROR_MAX_BYTES = 2 * 1024
CONSOLE_DUMP_MAX_BYTES = 3 * 1024
CONSOLE_DUMP_MAX_ENTRIES = 20
NETWORK_SAMPLE_MAX_BYTES = 512
DOM_SNIPPET_MAX_BYTES = 1024
SELECTED_TEXT_MAX_CHARS = 180
ELEMENT_FIELD_MAX_CHARS = 300
SUMMARY_MESSAGE_MAX_CHARS = 200

# Destination limits, only enforced by the caller-side request helpers
DESTINATION_BODY_LIMIT_BYTES = 64 * 1024
DESTINATION_WARN_BYTES = 55 * 1024

TRUNCATION_MARKER = "[…] truncated"
FALLBACK_TITLE = "Issue Report"
