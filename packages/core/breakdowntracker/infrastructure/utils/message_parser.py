"""Parser for breakdown reports pasted from the drivers' chat channel.

A report is a loosely formatted block of ``Label: value`` lines, e.g.:

    INF. QUEBRA VEÍCULO: LH4521 - PERFIL: CARRETA 3 EIXOS
    PRT Interno: 4521
    Motorista: João da Silva
    Placa Cavalo: ABC1D23 | Placa Carreta: XYZ9K87
    Status: Parado | Tecnologia: Sascar
    ...
    ETA ORIGEM
    Prazo: 22/07 10:00
    Endereço: CD Cajamar

Missing lines leave the matching field empty; parsing never fails on content.
"""

import re

from pydantic import BaseModel, Field

from breakdowntracker.domain.models.status import TrackingStatus
from breakdowntracker.domain.models.tracking_error import ValidationError

MAX_MESSAGE_LENGTH = 10000

VEHICLE_CODE_PATTERN = re.compile(r"INF\. QUEBRA VEÍCULO:\s*([A-Z0-9]+)", re.IGNORECASE)
VEHICLE_PROFILE_PATTERN = re.compile(r"PERFIL:\s*(.+)", re.IGNORECASE)
INTERNAL_PRT_PATTERN = re.compile(r"PRT Interno:\s*(\d+)", re.IGNORECASE)
DRIVER_PATTERN = re.compile(r"Motorista:\s*(.+)", re.IGNORECASE)
TRUCK_PLATE_PATTERN = re.compile(r"Placa Cavalo\s*:\s*([A-Z0-9]+)", re.IGNORECASE)
TRAILER_PLATE_PATTERN = re.compile(r"Placa Carreta:\s*([A-Z0-9]+)", re.IGNORECASE)
STATUS_PATTERN = re.compile(r"Status:\s*([^|]+)", re.IGNORECASE)
TECHNOLOGY_PATTERN = re.compile(r"Tecnologia:\s*(.+)", re.IGNORECASE)
ADDRESS_PATTERN = re.compile(r"Endereço:\s*(.+)", re.IGNORECASE)
MAPS_PATTERN = re.compile(r"Maps:\s*(.+)", re.IGNORECASE)
OCCURRENCE_PATTERN = re.compile(r"Ocorrência:\s*(.+)", re.IGNORECASE)
DEADLINE_PATTERN = re.compile(r"Prazo:\s*(.+)", re.IGNORECASE)
RELEASE_DEADLINE_PATTERN = re.compile(r"Prazo de liberação:\s*(.+)", re.IGNORECASE)
REMAINING_DISTANCE_PATTERN = re.compile(r"Distância restante:\s*([^-]+)", re.IGNORECASE)
ARRIVAL_PREDICTION_PATTERN = re.compile(r"Previsão:\s*(.+)", re.IGNORECASE)


class ParsedBreakdownMessage(BaseModel):
    """Record fields extracted from one report.

    ``status`` is None when the report has no ``Status:`` line.
    """

    record_fields: dict[str, str] = Field(default_factory=dict)
    status: TrackingStatus | None = None


def _extract(line: str | None, pattern: re.Pattern[str]) -> str:
    if line is None:
        return ""
    match = pattern.search(line)
    return match.group(1).strip() if match else ""


def _find_line(lines: list[str], marker: str, exclude: str | None = None) -> str | None:
    for line in lines:
        if marker in line and (exclude is None or exclude not in line):
            return line
    return None


def _block_line(lines: list[str], marker: str, offset: int) -> str | None:
    """Line ``offset`` positions below the first line containing ``marker``."""
    for index, line in enumerate(lines):
        if marker in line:
            target = index + offset
            return lines[target] if target < len(lines) else None
    return None


def _contains_any(text: str, *needles: str) -> bool:
    return any(needle in text for needle in needles)


def map_reported_status(text: str) -> TrackingStatus:
    """Map the free-text status of a report to a TrackingStatus.

    Unrecognized text maps to ``aguardando_tecnico``, the status a fresh
    breakdown starts in.
    """
    s = text.lower()
    if "parado" in s:
        return TrackingStatus.AguardandoTecnico
    if _contains_any(s, "transito", "trânsito"):
        return TrackingStatus.ReinicioViagem
    if "resolvido" in s:
        return TrackingStatus.Finalizado
    if "aguardando" in s and _contains_any(s, "tecnico", "técnico"):
        return TrackingStatus.AguardandoTecnico
    if "aguardando" in s and _contains_any(s, "mecanico", "mecânico"):
        return TrackingStatus.AguardandoMecanico
    if _contains_any(s, "manutencao", "manutenção"):
        return TrackingStatus.ManutencaoSemPrevisao
    if "sem" in s and "previsao" in s:
        return TrackingStatus.SemPrevisao
    if "transbordo" in s:
        if _contains_any(s, "troca", "cavalo"):
            return TrackingStatus.TransbordoTrocaCavalo
        if "andamento" in s:
            return TrackingStatus.TransbordoEmAndamento
        if "finalizado" in s:
            return TrackingStatus.TransbordoFinalizado
        return TrackingStatus.TransbordoTrocaCavalo
    if _contains_any(s, "reinicio", "reinício"):
        return TrackingStatus.ReinicioViagem
    if "finalizado" in s:
        return TrackingStatus.Finalizado
    return TrackingStatus.AguardandoTecnico


def parse_breakdown_message(message: str | None) -> ParsedBreakdownMessage:
    """Extract LogisticsRecord fields from a pasted breakdown report.

    Args:
        message: The report text as pasted by the operator.

    Returns:
        Parsed fields (always including ``original_message``) and the
        reported status, if any.

    Raises:
        ValidationError: If the message is empty or too long.
    """
    if message is None or not message.strip():
        raise ValidationError("Message cannot be empty", field="message")
    if len(message) > MAX_MESSAGE_LENGTH:
        raise ValidationError(
            f"Message must be {MAX_MESSAGE_LENGTH} characters or less",
            field="message",
        )

    lines = [line for line in message.splitlines() if line.strip()]

    vehicle_line = _find_line(lines, "INF. QUEBRA VEÍCULO")
    plate_line = _find_line(lines, "Placa Cavalo")
    status_line = _find_line(lines, "Status")
    distance_line = _find_line(lines, "Distância restante")

    fields = {
        "vehicle_code": _extract(vehicle_line, VEHICLE_CODE_PATTERN),
        "vehicle_profile": _extract(vehicle_line, VEHICLE_PROFILE_PATTERN),
        "internal_prt": _extract(_find_line(lines, "PRT Interno"), INTERNAL_PRT_PATTERN),
        "driver_name": _extract(_find_line(lines, "Motorista"), DRIVER_PATTERN),
        "truck_plate": _extract(plate_line, TRUCK_PLATE_PATTERN),
        "trailer_plate": _extract(plate_line, TRAILER_PLATE_PATTERN),
        "technology": _extract(status_line, TECHNOLOGY_PATTERN),
        "current_address": _extract(_find_line(lines, "Endereço", exclude="ETA"), ADDRESS_PATTERN),
        "maps_link": _extract(_find_line(lines, "Maps"), MAPS_PATTERN),
        "occurrence_description": _extract(_find_line(lines, "Ocorrência"), OCCURRENCE_PATTERN),
        "eta_origin_deadline": _extract(_block_line(lines, "ETA ORIGEM", 1), DEADLINE_PATTERN),
        "eta_origin_address": _extract(_block_line(lines, "ETA ORIGEM", 2), ADDRESS_PATTERN),
        "cpt_release_deadline": _extract(
            _block_line(lines, "CPT", 1), RELEASE_DEADLINE_PATTERN
        ),
        "eta_destination_deadline": _extract(
            _block_line(lines, "ETA DESTINO", 1), DEADLINE_PATTERN
        ),
        "eta_destination_address": _extract(
            _block_line(lines, "ETA DESTINO", 2), ADDRESS_PATTERN
        ),
        "remaining_distance": _extract(distance_line, REMAINING_DISTANCE_PATTERN),
        "arrival_prediction": _extract(distance_line, ARRIVAL_PREDICTION_PATTERN),
        "original_message": message,
    }

    status = None
    if status_line is not None:
        status = map_reported_status(_extract(status_line, STATUS_PATTERN))

    return ParsedBreakdownMessage(record_fields=fields, status=status)
