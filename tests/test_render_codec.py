# ambrogio-reminders - Italian Reminder Engine and Scheduler
# Copyright (c) 2026 The ambrogio-reminders authors
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Licensing inquiries: see the ambrogio-reminders project page

"""Tests for rendering specifications and their JSON document form."""

import json
import sys
from datetime import datetime, time
from pathlib import Path

import pytest
import pytz

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reminders.codec import spec_from_dict, spec_to_dict
from reminders.render import describe_spec, format_time, render_spec
from reminders.time_parser import parse_time_expression

ROME = pytz.timezone("Europe/Rome")
RECEIVED = ROME.localize(datetime(2026, 10, 7, 10, 30))

PHRASES = [
    "giovedì",
    "tra 1 minuto e 20 secondi",
    "ogni 2 anni",
    "ogni sabato da giugno 2025 ad aprile 2026",
    "ogni secondo e terzo lunedì alle 9",
    "ogni ultima domenica alle 10",
    "il 13 settembre alle 11 e 37",
    "nel 2027",
    "ogni minuto",
    "ogni 15 minuti",
    "ogni gennaio e luglio",
    "ogni 1 e 15 agosto",
    "domani alle 9",
    "fino al 31 dicembre",
]


class TestRender:
    """Rendered phrases parse back to the same specification."""

    @pytest.mark.parametrize("phrase", PHRASES)
    def test_render_parses_back(self, phrase):
        spec = parse_time_expression(phrase, RECEIVED)
        rendered = render_spec(spec)
        assert parse_time_expression(rendered, RECEIVED) == spec

    def test_once_offset(self):
        spec = parse_time_expression("tra 5 minuti", RECEIVED)
        assert render_spec(spec) == "tra 5 minuti alle 10:35"

    def test_once_date(self):
        spec = parse_time_expression("il 13 settembre alle 11 e 37", RECEIVED)
        assert render_spec(spec) == "il 13 settembre alle 11:37"

    def test_ordinal_weekdays(self):
        spec = parse_time_expression("ogni secondo e terzo lunedì alle 9", RECEIVED)
        assert render_spec(spec) == (
            "ogni secondo lunedì e terzo lunedì alle 09:00 dal 7 ottobre 2026 alle 10:30"
        )

    def test_range(self):
        spec = parse_time_expression("ogni sabato da giugno 2025 ad aprile 2026", RECEIVED)
        assert render_spec(spec) == (
            "ogni sabato alle 10:30 dal 1 giugno 2025 alle 10:30 "
            "al 30 aprile 2026 alle 23:59:59"
        )

    def test_single_second_interval(self):
        spec = parse_time_expression("ogni secondo", RECEIVED)
        assert render_spec(spec).startswith("ogni 1 secondo ")

    def test_format_time(self):
        assert format_time(time(9, 5)) == "09:05"
        assert format_time(time(9, 5, 7)) == "09:05:07"


class TestDescribe:
    """Test the one-line summaries used in listings."""

    def test_kinds(self):
        assert describe_spec(parse_time_expression("domani", RECEIVED)) == "una volta"
        assert describe_spec(parse_time_expression("ogni giorno", RECEIVED)) == "ricorrente"
        assert (
            describe_spec(parse_time_expression("fino al 31 dicembre", RECEIVED))
            == "ricorrente fino al 31 dicembre 2026"
        )


class TestCodec:
    """Test the JSON document form."""

    @pytest.mark.parametrize("phrase", PHRASES)
    def test_document_survives_json(self, phrase):
        spec = parse_time_expression(phrase, RECEIVED, message="Chiamare la nonna")
        document = json.loads(json.dumps(spec_to_dict(spec)))
        assert spec_from_dict(document) == spec

    def test_document_fields(self):
        spec = parse_time_expression("ogni secondo e terzo lunedì alle 9", RECEIVED)
        document = spec_to_dict(spec)
        assert document["kind"] == "Recurrent"
        assert document["since"] == "2026-10-07T10:30:00+02:00"
        assert document["until"] is None
        assert document["anchor_times"] == ["09:00:00"]
        assert document["interval"] == {"count": 1, "unit": "day"}
        assert document["date_selector"]["weekdays"] == [[0, 2], [0, 3]]
        assert document["timezone"] == "Europe/Rome"

    def test_offset_document(self):
        spec = parse_time_expression("tra 1 minuto e 20 secondi", RECEIVED)
        assert spec_to_dict(spec)["date_selector"]["offset"] == {"minutes": 1, "seconds": 20}

    def test_unknown_kind(self):
        document = spec_to_dict(parse_time_expression("domani", RECEIVED))
        document["kind"] = "Sometimes"
        with pytest.raises(ValueError):
            spec_from_dict(document)

    def test_invalid_document(self):
        document = spec_to_dict(parse_time_expression("domani", RECEIVED))
        document["anchor_times"] = []
        with pytest.raises(ValueError):
            spec_from_dict(document)
