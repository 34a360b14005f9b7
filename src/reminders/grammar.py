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

"""
Grammar Vocabulary

Keywords of the Italian reminder grammar. All keys are lowercase with
accents stripped, matching Token.norm.
"""

from datetime import time

from dateutil.relativedelta import relativedelta

from .spec import Unit

COMMAND_WORDS = {"ricordami", "ricordati"}

WEEKDAYS = {
    "lunedi": 0,
    "martedi": 1,
    "mercoledi": 2,
    "giovedi": 3,
    "venerdi": 4,
    "sabato": 5,
    "domenica": 6,
}

MONTHS = {
    "gennaio": 1,
    "febbraio": 2,
    "marzo": 3,
    "aprile": 4,
    "maggio": 5,
    "giugno": 6,
    "luglio": 7,
    "agosto": 8,
    "settembre": 9,
    "ottobre": 10,
    "novembre": 11,
    "dicembre": 12,
}

ORDINALS = {
    "primo": 1,
    "prima": 1,
    "secondo": 2,
    "seconda": 2,
    "terzo": 3,
    "terza": 3,
    "quarto": 4,
    "quarta": 4,
    "quinto": 5,
    "quinta": 5,
    "ultimo": -1,
    "ultima": -1,
}

DURATION_UNITS = {
    # Plural
    "secondi": Unit.SECOND,
    "minuti": Unit.MINUTE,
    "ore": Unit.HOUR,
    "giorni": Unit.DAY,
    "settimane": Unit.WEEK,
    "mesi": Unit.MONTH,
    "anni": Unit.YEAR,
    # Singular
    "secondo": Unit.SECOND,
    "minuto": Unit.MINUTE,
    "ora": Unit.HOUR,
    "giorno": Unit.DAY,
    "settimana": Unit.WEEK,
    "mese": Unit.MONTH,
    "anno": Unit.YEAR,
}

NUMBER_WORDS = {
    "un": 1,
    "uno": 1,
    "una": 1,
    "due": 2,
    "tre": 3,
    "quattro": 4,
    "cinque": 5,
    "sei": 6,
    "sette": 7,
    "otto": 8,
    "nove": 9,
    "dieci": 10,
    "undici": 11,
    "dodici": 12,
}

# "e mezza" after a quantity adds half of its unit
HALF_WORDS = {"mezza", "mezzo", "mezz"}
HALF_UNITS = {
    Unit.MINUTE: relativedelta(seconds=30),
    Unit.HOUR: relativedelta(minutes=30),
    Unit.DAY: relativedelta(hours=12),
}

NAMED_TIMES = {
    "mezzogiorno": time(12, 0),
    "mezzanotte": time(0, 0),
}

RELATIVE_DAYS = {"oggi": 0, "domani": 1, "dopodomani": 2}

LIST_SEPARATORS = {",", ";", "e"}

# Keyword families
RELATIVE_WORDS = {"tra", "fra"}
RECURRENCE_WORDS = {"ogni"}
TIME_WORDS = {"alle", "all"}
DAY_WORDS = {"il", "lo", "l"}
MONTH_WORDS = {"a", "ad"}
YEAR_WORDS = {"nel"}
SINCE_WORDS = {"da", "dal", "dall", "dalla", "dallo"}
UNTIL_WORDS = {"a", "ad", "al", "all", "alla", "allo"}
OPEN_UNTIL_WORDS = {"fino"}

MIN_YEAR = 1970
MAX_YEAR = 9999
