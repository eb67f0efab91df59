"""
Pytest fixtures shared by the form builder tests.
"""

import pytest

from form_builder.schemas.form import ApiConfig, FieldOption, FormConfig, FormField, FormRule
from form_builder.storage import FormStorage, InMemoryKeyValueStore


@pytest.fixture
def basic_fields():
    """A small form: a select driving a checkbox, a text and a city select."""
    return [
        FormField(
            id="country",
            label="Country",
            type="select",
            options=[FieldOption(label="France", value="fr"), FieldOption(label="Spain", value="es")],
        ),
        FormField(id="subscribe", label="Subscribe", type="checkbox", default_value=False),
        FormField(id="email", label="Email", type="email", visible=False),
        FormField(id="city", label="City", type="select"),
    ]


@pytest.fixture
def cities_api():
    """ApiConfig for a cities endpoint keyed by country."""
    return ApiConfig(
        url="https://api.example.test/cities",
        param_mapping={"country": "country_code"},
        response_path="data.items",
    )


@pytest.fixture
def form_config(basic_fields, cities_api):
    """Configuration with one rule per kind of effect."""
    return FormConfig(
        fields=basic_fields,
        rules=[
            FormRule(source_field_id="subscribe", action="show", target_field_id="email"),
            FormRule(source_field_id="country", action="populateOptions",
                     target_field_id="city", api_config=cities_api),
        ],
    )


@pytest.fixture
def clock():
    """Mutable epoch-millis clock: set clock["now"] to move time."""
    return {"now": 1_700_000_000_000}


@pytest.fixture
def memory_storage(clock):
    """FormStorage over an in-memory key-value store driven by the test clock."""
    return FormStorage(InMemoryKeyValueStore(), clock=lambda: clock["now"])
