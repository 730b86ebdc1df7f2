"""
species_detection.py — Catch Photo Species Detection Pipeline
--------------------------------------------------------------

This module defines the LangGraph pipeline behind `POST /detect-species`:
one catch photo in, at most three species suggestions out, verified
against the species catalog.

The pipeline uses:
* The species table (via `load_species_directory`) to build a closed list
  of allowed names
* The OpenAI vision classifier, prompted with that list when available
* Directory matching to replace classifier labels with canonical names

Stages:
receive → load_directory → build_prompt → call_classifier → parse_response →
extract_suggestions → detect_unmatched → (unmatched? END) → match_directory → END

Key Features:
* The directory is loaded BEFORE the classifier call because the prompt
  depends on it; a catalog outage only switches to the open prompt
* Typed exceptions abort the graph (see core.exception); nothing is retried
* Labels found in the catalog come back with their canonical spelling

LangGraph
START
 └── receive
       ↓
   load_directory
       ↓
   build_prompt ── constrained (directory has entries) | fallback
       ↓
   call_classifier
       ↓
   parse_response
       ↓
   extract_suggestions
       ↓
   detect_unmatched
       ├── unmatched → END   {"suggestions": [], "unmatched": true}
       └── match → match_directory → END   {"suggestions": [...]}

"""

from typing import List, Optional

from langgraph.graph import END, StateGraph

from config.logging_config import get_logger
from core.exception import ClientFault, NoSuggestionFault
from core.prompts import USER_INSTRUCTION, build_prompt
from core.species_directory import load_species_directory
from core.suggestions import (
    MAX_SUGGESTIONS,
    Suggestion,
    extract_suggestions,
    is_unmatched_outcome,
)
from tools.openai_utils import (
    extract_text_from_response,
    parse_classifier_json,
    to_image_data_url,
)
from tools.species_lookup import match_against_directory

logger = get_logger(__name__)

UNMATCHED_MESSAGE = "Espece non reconnue"


def harmonize_suggestion(suggestion: Suggestion, directory: Optional[dict], constrained: bool) -> Suggestion:
    """
    Annotates one suggestion with its catalog verdict.

    - matched: canonical label, source "database"
    - not matched, constrained prompt: kept but flagged unmatched (the model
      ignored the closed list)
    - not matched, open prompt: source "ai"
    """
    canonical = match_against_directory(suggestion.species, directory)
    if canonical:
        return suggestion.model_copy(update={"species": canonical, "matched": True, "source": "database"})
    if constrained:
        return suggestion.model_copy(update={"matched": False, "source": "ai", "unmatched": True})
    return suggestion.model_copy(update={"matched": False, "source": "ai"})


class SpeciesDetector:
    """
    Runs the detection graph for one image per call.

    Args:
        directory_source: object with `fetch_rows()` (db.species_directory.SpeciesTableSource)
        classifier: object with `classify(prompt, image_url, instruction)` and
            `configured` (tools.openai_utils.SpeciesClassifier)
    """

    def __init__(self, directory_source, classifier):
        self.directory_source = directory_source
        self.classifier = classifier
        self.graph = self._build_graph()

    @property
    def configured(self) -> bool:
        return bool(getattr(self.classifier, "configured", False))

    # ---------- nodes ----------
    def receive_fn(self, state: dict) -> dict:
        image = state.get("image")
        image_url = to_image_data_url(image) if isinstance(image, str) else None
        if not image_url:
            raise ClientFault("Image obligatoire")
        return {**state, "image_url": image_url}

    def load_directory_fn(self, state: dict) -> dict:
        directory = load_species_directory(self.directory_source)
        return {**state, "directory": directory}

    def build_prompt_fn(self, state: dict) -> dict:
        directory = state.get("directory")
        species_names = list(directory.values()) if directory else None
        prompt = build_prompt(species_names)
        logger.info(
            f"[detect-species] species loaded: {len(species_names or [])}, prompt length: {len(prompt)}"
        )
        return {**state, "constrained": bool(species_names), "prompt": prompt}

    def call_classifier_fn(self, state: dict) -> dict:
        payload = self.classifier.classify(state["prompt"], state["image_url"], USER_INSTRUCTION)
        return {**state, "payload": payload}

    def parse_response_fn(self, state: dict) -> dict:
        text = extract_text_from_response(state.get("payload"))
        return {**state, "parsed": parse_classifier_json(text)}

    def extract_suggestions_fn(self, state: dict) -> dict:
        suggestions = extract_suggestions(state["parsed"])
        if not suggestions:
            raise NoSuggestionFault()
        return {**state, "suggestions": suggestions}

    def detect_unmatched_fn(self, state: dict) -> dict:
        unmatched = is_unmatched_outcome(state["suggestions"])
        if unmatched:
            logger.info("[detect-species] classifier found no plausible species")
            return {
                **state,
                "unmatched": True,
                "result": {"suggestions": [], "unmatched": True, "error": UNMATCHED_MESSAGE},
            }
        return {**state, "unmatched": False}

    def match_directory_fn(self, state: dict) -> dict:
        directory = state.get("directory")
        constrained = state.get("constrained", False)
        harmonized: List[Suggestion] = [
            harmonize_suggestion(s, directory, constrained)
            for s in state["suggestions"][:MAX_SUGGESTIONS]
        ]
        return {
            **state,
            "suggestions": harmonized,
            "result": {"suggestions": [s.to_dict() for s in harmonized]},
        }

    def _build_graph(self):
        state_graph = StateGraph(dict)

        state_graph.add_node("receive", self.receive_fn)
        state_graph.add_node("load_directory", self.load_directory_fn)
        state_graph.add_node("build_prompt", self.build_prompt_fn)
        state_graph.add_node("call_classifier", self.call_classifier_fn)
        state_graph.add_node("parse_response", self.parse_response_fn)
        state_graph.add_node("extract_suggestions", self.extract_suggestions_fn)
        state_graph.add_node("detect_unmatched", self.detect_unmatched_fn)
        state_graph.add_node("match_directory", self.match_directory_fn)

        state_graph.set_entry_point("receive")

        state_graph.add_edge("receive", "load_directory")
        state_graph.add_edge("load_directory", "build_prompt")
        state_graph.add_edge("build_prompt", "call_classifier")
        state_graph.add_edge("call_classifier", "parse_response")
        state_graph.add_edge("parse_response", "extract_suggestions")
        state_graph.add_edge("extract_suggestions", "detect_unmatched")
        state_graph.add_conditional_edges(
            "detect_unmatched",
            lambda s: "unmatched" if s.get("unmatched") else "match",
            {"unmatched": END, "match": "match_directory"},
        )
        state_graph.add_edge("match_directory", END)

        return state_graph.compile()

    def run(self, image: Optional[str]) -> dict:
        """
        Runs the full pipeline and returns the final graph state.

        Raises:
            DetectionError subclasses from core.exception
        """
        return self.graph.invoke({"image": image})

    def detect(self, image: Optional[str]) -> dict:
        """Returns the JSON-ready response body for one image."""
        return self.run(image)["result"]
