"""
End-to-end tests of the detection graph with fake collaborators.
"""

import pytest

from core.exception import ClientFault, NoSuggestionFault, UpstreamFault
from core.prompts import FALLBACK_PROMPT
from fakes import FISH_ROWS, FakeClassifier, FakeDirectorySource, db_down_error, responses_payload


class TestScenarios:
    def test_canonical_label_replaces_classifier_spelling(self, make_detector):
        classifier = FakeClassifier({"primary": {"species": "Thon Rouge", "confidence": "93%"}})
        detector = make_detector(FakeDirectorySource(FISH_ROWS), classifier)

        result = detector.detect("data:image/jpeg;base64,AAAA")

        assert result == {
            "suggestions": [
                {"species": "Thon rouge", "confidence": 93, "matched": True, "source": "database"},
            ]
        }

    def test_directory_outage_falls_back_to_open_prompt(self, make_detector):
        classifier = FakeClassifier({"primary": {"species": "Carpe", "confidence": 0.6}})
        detector = make_detector(FakeDirectorySource(error=db_down_error()), classifier)

        result = detector.detect("AAAA")

        assert classifier.calls[0]["prompt"] == FALLBACK_PROMPT
        assert result == {
            "suggestions": [{"species": "Carpe", "confidence": 60, "matched": False, "source": "ai"}]
        }

    def test_any_catalog_failure_degrades_to_ai_suggestions(self, make_detector):
        classifier = FakeClassifier({"primary": {"species": "Thon rouge", "confidence": 80}})
        source = FakeDirectorySource(error=ConnectionError("catalog API unreachable"))

        result = make_detector(source, classifier).detect("AAAA")

        assert classifier.calls[0]["prompt"] == FALLBACK_PROMPT
        assert result == {
            "suggestions": [{"species": "Thon rouge", "confidence": 80, "matched": False, "source": "ai"}]
        }

    def test_unk_with_zero_confidence_species_is_unmatched_outcome(self, make_detector):
        classifier = FakeClassifier({
            "primary": {"species": "unk", "confidence": 70},
            "alternatives": [{"species": "Thon rouge", "confidence": 0}],
        })

        result = make_detector(FakeDirectorySource(FISH_ROWS), classifier).detect("AAAA")

        assert result == {"suggestions": [], "unmatched": True, "error": "Espece non reconnue"}

    def test_unknown_answer_is_unmatched_outcome(self, make_detector):
        classifier = FakeClassifier({"primary": {"species": "unknown", "confidence": 0}})
        detector = make_detector(FakeDirectorySource(FISH_ROWS), classifier)

        result = detector.detect("AAAA")

        assert result == {"suggestions": [], "unmatched": True, "error": "Espece non reconnue"}

    def test_classifier_http_500_surfaces_upstream_fault(self, make_detector):
        classifier = FakeClassifier(error=UpstreamFault(detail="boom" * 300, status=500))
        detector = make_detector(FakeDirectorySource(FISH_ROWS), classifier)

        with pytest.raises(UpstreamFault) as excinfo:
            detector.detect("AAAA")

        payload = excinfo.value.to_payload()
        assert payload["error"] == "Analyse indisponible"
        assert payload["debug"]["status"] == 500
        assert len(payload["debug"]["detail"]) == 500
        assert "suggestions" not in payload


class TestPromptSelection:
    def test_constrained_prompt_lists_every_species_in_order(self, make_detector):
        classifier = FakeClassifier({"primary": {"species": "Thon rouge", "confidence": 90}})
        make_detector(FakeDirectorySource(FISH_ROWS), classifier).detect("AAAA")

        prompt = classifier.calls[0]["prompt"]
        assert "1. Thon rouge\n2. Bar (loup de mer)" in prompt
        assert '"unknown"' in prompt
        assert prompt != FALLBACK_PROMPT

    def test_empty_table_uses_open_prompt(self, make_detector):
        classifier = FakeClassifier({"primary": {"species": "Carpe", "confidence": 70}})
        result = make_detector(FakeDirectorySource([]), classifier).detect("AAAA")

        assert classifier.calls[0]["prompt"] == FALLBACK_PROMPT
        assert result["suggestions"][0] == {"species": "Carpe", "confidence": 70, "matched": False, "source": "ai"}

    def test_directory_loaded_on_every_call(self, make_detector):
        source = FakeDirectorySource(FISH_ROWS)
        detector = make_detector(source, FakeClassifier({"primary": {"species": "Bar", "confidence": 50}}))
        detector.detect("AAAA")
        detector.detect("AAAA")
        assert source.calls == 2


class TestImageHandling:
    def test_raw_base64_is_prefixed(self, make_detector):
        classifier = FakeClassifier({"primary": {"species": "Thon rouge", "confidence": 90}})
        make_detector(classifier=classifier).detect("/9j/4AAQ")
        assert classifier.calls[0]["image_url"] == "data:image/jpeg;base64,/9j/4AAQ"

    def test_data_url_is_kept(self, make_detector):
        classifier = FakeClassifier({"primary": {"species": "Thon rouge", "confidence": 90}})
        make_detector(classifier=classifier).detect("data:image/png;base64,iVBOR")
        assert classifier.calls[0]["image_url"] == "data:image/png;base64,iVBOR"

    @pytest.mark.parametrize("image", [None, "", 42])
    def test_missing_image_is_client_fault(self, make_detector, image):
        classifier = FakeClassifier({"primary": {"species": "Thon rouge", "confidence": 90}})
        with pytest.raises(ClientFault) as excinfo:
            make_detector(classifier=classifier).detect(image)
        assert excinfo.value.message == "Image obligatoire"
        assert classifier.calls == []


class TestMatching:
    def test_classifier_leaving_the_closed_list_is_flagged(self, make_detector):
        classifier = FakeClassifier({
            "primary": {"species": "Thon Rouge", "confidence": 80},
            "alternatives": [{"species": "Sériole", "confidence": 30}],
        })
        result = make_detector(FakeDirectorySource(FISH_ROWS), classifier).detect("AAAA")

        assert result["suggestions"] == [
            {"species": "Thon rouge", "confidence": 80, "matched": True, "source": "database"},
            {"species": "Sériole", "confidence": 30, "matched": False, "source": "ai", "unmatched": True},
        ]

    def test_fuzzy_match_uses_canonical_label(self, make_detector):
        classifier = FakeClassifier({"primary": {"species": "loup de mer", "confidence": 0.77}})
        result = make_detector(FakeDirectorySource(FISH_ROWS), classifier).detect("AAAA")
        assert result["suggestions"][0]["species"] == "Bar (loup de mer)"
        assert result["suggestions"][0]["confidence"] == 77

    def test_order_kept_and_capped(self, make_detector):
        rows = [{"name": n} for n in ("Sole", "Turbot", "Raie", "Mulet")]
        classifier = FakeClassifier({
            "primary": {"species": "Sole", "confidence": 20},
            "alternatives": [
                {"species": "Turbot", "confidence": 90},
                {"species": "Raie", "confidence": 60},
                {"species": "Mulet", "confidence": 99},
            ],
        })
        result = make_detector(FakeDirectorySource(rows), classifier).detect("AAAA")
        assert [s["species"] for s in result["suggestions"]] == ["Sole", "Turbot", "Raie"]

    def test_unknown_mixed_with_real_species_is_not_unmatched(self, make_detector):
        classifier = FakeClassifier({
            "primary": {"species": "unknown", "confidence": 0},
            "alternatives": [{"species": "Thon rouge", "confidence": 20}],
        })
        result = make_detector(FakeDirectorySource(FISH_ROWS), classifier).detect("AAAA")
        assert "unmatched" not in result
        assert result["suggestions"][1]["matched"] is True
        assert result["suggestions"][0]["unmatched"] is True


class TestUpstreamOutput:
    def test_unparseable_output_is_upstream_fault(self, make_detector):
        classifier = FakeClassifier(payload=responses_payload("Désolé, je ne peux pas."))
        with pytest.raises(UpstreamFault):
            make_detector(classifier=classifier).detect("AAAA")

    def test_fenced_flat_output_text(self, make_detector):
        classifier = FakeClassifier(payload={
            "output_text": '```json\n{"primary": {"species": "Bar (loup de mer)", "confidence": 64}}\n```'
        })
        result = make_detector(classifier=classifier).detect("AAAA")
        assert result["suggestions"][0]["species"] == "Bar (loup de mer)"

    def test_no_usable_suggestion(self, make_detector):
        classifier = FakeClassifier({"primary": {"species": ""}, "alternatives": []})
        with pytest.raises(NoSuggestionFault) as excinfo:
            make_detector(classifier=classifier).detect("AAAA")
        assert excinfo.value.status_code == 422

    def test_final_state_exposes_intermediate_steps(self, make_detector):
        classifier = FakeClassifier({"primary": {"species": "Thon rouge", "confidence": 90}})
        state = make_detector(classifier=classifier).run("AAAA")
        assert state["constrained"] is True
        assert state["directory"] == {"thon rouge": "Thon rouge", "bar (loup de mer)": "Bar (loup de mer)"}
        assert state["parsed"]["primary"]["species"] == "Thon rouge"
