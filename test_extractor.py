"""
Tests for free-text task extraction
"""

from datetime import date

import pytest

from clickup_bridge.extractor import (
    build_description,
    clean,
    extract,
    extract_assignee_names,
    extract_due_date,
    extract_folder_terms,
    extract_priority,
    extract_space_name,
    extract_task_name,
)
from clickup_bridge.models import Priority

TODAY = date(2025, 3, 10)
EXAMPLE = "crea una tarea en clientes, somos puertas, revisar propuesta, asignar a juan, urgente"


class TestExampleInstruction:

    def test_fields(self):
        command = extract(EXAMPLE, today=TODAY)

        assert command.space_name == "clientes"
        assert command.priority == Priority.URGENT
        assert "juan" in command.assignee_names
        assert "puertas" in command.folder_terms
        assert command.task_name == "revisar propuesta"
        assert command.due_date is None

    def test_confidences(self):
        command = extract(EXAMPLE, today=TODAY)

        assert command.confidence["space_name"] == 0.8
        assert command.confidence["folder_terms"] == 0.9
        assert command.confidence["task_name"] == 0.9
        assert command.confidence["priority"] == 0.7
        assert command.confidence["assignee_names"] == 0.8
        assert command.confidence["due_date"] == 0.0

    def test_description_embeds_text_and_folder_line(self):
        command = extract(EXAMPLE, today=TODAY)

        assert EXAMPLE in command.description
        assert "Folder/client: puertas" in command.description


class TestSpaceName:

    def test_locative_phrase_wins_over_keywords(self):
        assert extract_space_name(clean("tarea en marketing para clientes")) == ("marketing", 0.8)

    def test_article_and_space_word_are_skipped(self):
        assert extract_space_name(clean("crear tarea en el espacio ventas")) == ("ventas", 0.8)

    def test_keyword_fallback(self):
        assert extract_space_name(clean("revisar campaña de marketing")) == ("marketing", 0.8)

    def test_miss(self):
        assert extract_space_name(clean("llamar al proveedor")) == (None, 0.2)

    def test_punctuation_only_capture_is_a_miss(self):
        assert extract_space_name(clean("reunion en ... revisar")) == (None, 0.2)

    def test_punctuation_only_capture_falls_through_to_keywords(self):
        assert extract_space_name(clean("reunion en ... sobre ventas")) == ("ventas", 0.8)


class TestFolderTerms:

    def test_terms_follow_locative_marker(self):
        terms, confidence = extract_folder_terms(clean("tarea para el cliente pigmea sobre facturas pendientes hoy"))
        assert terms == ["pigmea", "sobre", "facturas"]
        assert confidence == 0.9

    def test_first_remaining_tokens_without_marker(self):
        terms, _ = extract_folder_terms(clean("crea tarea: revisar contrato alquiler oficina"))
        assert terms == ["revisar", "contrato", "alquiler"]

    def test_short_and_stop_words_dropped(self):
        terms, confidence = extract_folder_terms(clean("crea una tarea a la de"))
        assert terms == []
        assert confidence == 0.1


class TestTaskName:

    def test_quoted_label_after_task_keyword(self):
        text = 'crea la tarea "Enviar Presupuesto" en clientes'
        assert extract_task_name(text, clean(text)) == ("Enviar Presupuesto", 0.9)

    def test_action_verb_keeps_original_case(self):
        text = "Revisar Propuesta Anual, urgente"
        assert extract_task_name(text, clean(text)) == ("Revisar Propuesta Anual", 0.9)

    def test_bounded_by_trailing_keyword(self):
        text = "preparar informe mensual asignar a maria"
        assert extract_task_name(text, clean(text)) == ("preparar informe mensual", 0.9)

    def test_miss(self):
        text = "algo para clientes"
        assert extract_task_name(text, clean(text)) == (None, 0.3)


class TestPriority:

    @pytest.mark.parametrize("text", ["esto es urgente", "ASAP please", "prioridad alta"])
    def test_urgent(self, text):
        assert extract_priority(clean(text)) == (Priority.URGENT, 0.7)

    @pytest.mark.parametrize("text", ["sin prisa", "low priority", "no urgente"])
    def test_low(self, text):
        assert extract_priority(clean(text)) == (Priority.LOW, 0.7)

    def test_default_normal(self):
        assert extract_priority(clean("revisar propuesta")) == (Priority.NORMAL, 0.3)


class TestAssignees:

    def test_all_patterns_accumulate(self):
        names, confidence = extract_assignee_names(
            clean("asignar a juan, avisar a maria.lopez@acme.com y a @pedro")
        )
        assert names == ["juan", "maria.lopez@acme.com", "pedro"]
        assert confidence == 0.8

    def test_repeated_matches_are_all_kept(self):
        names, _ = extract_assignee_names(clean("asignar a juan y assign to ana, cc @juan"))
        assert names == ["juan", "ana", "juan"]

    @pytest.mark.parametrize("text", ["", "revisar propuesta", EXAMPLE, "mail a@b.co", "@x"])
    def test_confidence_zero_iff_empty(self, text):
        names, confidence = extract_assignee_names(clean(text))
        assert (confidence == 0.0) == (names == [])
        assert 0.0 <= confidence <= 1.0


class TestDueDate:

    def test_iso(self):
        assert extract_due_date(clean("entregar el 2025-04-01"), TODAY) == (date(2025, 4, 1), 0.9)

    def test_day_month_year(self):
        assert extract_due_date(clean("entregar el 5/4/2025"), TODAY) == (date(2025, 4, 5), 0.9)

    def test_explicit_date_wins_over_keyword(self):
        assert extract_due_date(clean("mañana no, el 2025-04-01"), TODAY) == (date(2025, 4, 1), 0.9)

    def test_tomorrow(self):
        assert extract_due_date(clean("para mañana"), TODAY) == (date(2025, 3, 11), 0.9)

    def test_next_week(self):
        assert extract_due_date(clean("la próxima semana"), TODAY) == (date(2025, 3, 17), 0.9)

    def test_invalid_date_is_skipped(self):
        assert extract_due_date(clean("el 2025-13-45"), TODAY) == (None, 0.0)


class TestRobustness:

    @pytest.mark.parametrize("text", [None, "", "   ", "!!!???", "\"'\"'", 12345, "en", "tarea \"sin cerrar"])
    def test_never_raises(self, text):
        command = extract(text, today=TODAY)

        assert command.description
        assert command.priority == Priority.NORMAL
        assert all(0.0 <= score <= 1.0 for score in command.confidence.values())

    def test_description_without_folder_terms(self):
        assert build_description("hola", []) == 'Task created from instruction: "hola"'
