"""Wire models for answer submission (camelCase, as the player app sends them)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from storytrail.validation.answers import NO_CHOICE


class ValidateAnswerRequest(BaseModel):
    """Body of ``POST /validate-answer``.

    Ids are optional at the schema level so that their absence is reported
    as the documented 400, not a generic 422.
    """

    model_config = ConfigDict(populate_by_name=True)

    city_id: str | None = Field(None, alias="cityId")
    location_id: str | None = Field(None, alias="locationId")
    answer_index: int | None = Field(NO_CHOICE, alias="answerIndex")
    free_text_answer: str | None = Field(None, alias="freeTextAnswer", max_length=500)
