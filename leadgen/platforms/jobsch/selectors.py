"""jobs.ch DOM selectors and text labels.

Each selector constant is a tuple so callers iterate until a match is found.
"""

# --- Page readiness ---
BASE_CONTENT_SELECTOR: str = "body"

# --- Job detail links ---
DETAIL_LINK_PATTERN: str = "/vacancies/detail/"
DETAIL_LINK_SELECTORS: tuple[str, ...] = (
    'a[href*="/vacancies/detail/"]',
)

# --- Overlays ---
COOKIE_ACCEPT_SELECTORS: tuple[str, ...] = (
    r'button:text-matches("^\\s*ok\\s*$", "i")',
)
MODAL_CLOSE_SELECTORS: tuple[str, ...] = (
    r'button:text-matches("^\\s*close\\s*$", "i")',
    'button[aria-label*="close" i]',
    'button[data-testid="close"]',
)

# --- Text labels inside a posting ---
QUICK_APPLY_MARKER: str = "Easy apply"
RECOMMENDED_MARKER: str = "Recommended"
PLACE_OF_WORK_LABEL: str = "Place of work:"
WORKLOAD_LABEL: str = "Workload:"
CONTRACT_TYPE_LABEL: str = "Contract type:"
