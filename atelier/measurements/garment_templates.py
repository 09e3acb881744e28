"""
Measurement templates per garment family, plus validation and unit conversion.

A measurement set is the JSON stored on a Measurement row:

    {
        "template": "pants",
        "garment_type": "jeans",
        "unit": "inches",
        "points": [
            {"key": "waist", "name": "Waist", "category": "waist", "unit": "inches",
             "is_required": true, "order": 1, "value": 32.5, "notes": null},
            ...
        ]
    }
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

INCHES = 'inches'
CENTIMETERS = 'centimeters'
UNITS = (INCHES, CENTIMETERS)

CM_PER_INCH = 2.54
INCHES_PER_CM = 0.393701

# Values above this many inches are flagged as probable typos
MAX_PLAUSIBLE_INCHES = 100


@dataclass(frozen=True)
class MeasurementPoint:
    key: str
    name: str
    description: str
    category: str
    is_required: bool
    order: int


@dataclass(frozen=True)
class MeasurementTemplate:
    key: str
    name: str
    description: str
    garment_types: Tuple[str, ...]
    points: Tuple[MeasurementPoint, ...]

    def as_dict(self):
        return {
            'key': self.key,
            'name': self.name,
            'description': self.description,
            'garment_types': list(self.garment_types),
            'points': [
                {
                    'key': p.key,
                    'name': p.name,
                    'description': p.description,
                    'category': p.category,
                    'is_required': p.is_required,
                    'order': p.order,
                }
                for p in self.points
            ],
        }


def _point(key, name, description, category, is_required, order):
    return MeasurementPoint(key, name, description, category, is_required, order)


MEASUREMENT_TEMPLATES: Dict[str, MeasurementTemplate] = {
    'dress': MeasurementTemplate(
        key='dress',
        name='Dress Measurements',
        description='Standard measurements for dresses',
        garment_types=('dress', 'gown', 'evening_dress'),
        points=(
            _point('bust', 'Bust', 'Fullest part of the bust', 'bust', True, 1),
            _point('waist', 'Waist', 'Natural waistline', 'waist', True, 2),
            _point('hip', 'Hip', 'Fullest part of the hip', 'hip', True, 3),
            _point('length', 'Length', 'From shoulder to hem', 'length', True, 4),
            _point('shoulder_width', 'Shoulder Width', 'From shoulder point to shoulder point', 'shoulder', True, 5),
            _point('sleeve_length', 'Sleeve Length', 'From shoulder to wrist', 'sleeve', False, 6),
        ),
    ),
    'pants': MeasurementTemplate(
        key='pants',
        name='Pants Measurements',
        description='Standard measurements for pants',
        garment_types=('pants', 'trousers', 'jeans'),
        points=(
            _point('waist', 'Waist', 'Natural waistline', 'waist', True, 1),
            _point('hip', 'Hip', 'Fullest part of the hip', 'hip', True, 2),
            _point('inseam', 'Inseam', 'From crotch to ankle', 'length', True, 3),
            _point('outseam', 'Outseam', 'From waist to ankle', 'length', True, 4),
            _point('thigh', 'Thigh', 'Around the fullest part of the thigh', 'other', False, 5),
            _point('knee', 'Knee', 'Around the knee', 'other', False, 6),
        ),
    ),
    'shirt': MeasurementTemplate(
        key='shirt',
        name='Shirt Measurements',
        description='Standard measurements for shirts and blouses',
        garment_types=('shirt', 'blouse', 'top'),
        points=(
            _point('chest', 'Chest', 'Around the fullest part of the chest', 'bust', True, 1),
            _point('waist', 'Waist', 'Natural waistline', 'waist', True, 2),
            _point('length', 'Length', 'From shoulder to hem', 'length', True, 3),
            _point('shoulder_width', 'Shoulder Width', 'From shoulder point to shoulder point', 'shoulder', True, 4),
            _point('sleeve_length', 'Sleeve Length', 'From shoulder to wrist', 'sleeve', True, 5),
            _point('sleeve_width', 'Sleeve Width', 'Around the fullest part of the upper arm', 'sleeve', False, 6),
        ),
    ),
    'skirt': MeasurementTemplate(
        key='skirt',
        name='Skirt Measurements',
        description='Standard measurements for skirts',
        garment_types=('skirt', 'mini_skirt', 'maxi_skirt'),
        points=(
            _point('waist', 'Waist', 'Natural waistline', 'waist', True, 1),
            _point('hip', 'Hip', 'Fullest part of the hip', 'hip', True, 2),
            _point('length', 'Length', 'From waist to hem', 'length', True, 3),
            _point('hem_width', 'Hem Width', 'Width at the bottom of the skirt', 'other', False, 4),
        ),
    ),
}

DEFAULT_TEMPLATE = 'dress'


def get_measurement_template(garment_type) -> MeasurementTemplate:
    """Template whose garment types include garment_type; dress when none does"""
    wanted = (garment_type or '').strip().lower().replace(' ', '_')
    for template in MEASUREMENT_TEMPLATES.values():
        if wanted in template.garment_types:
            return template
    return MEASUREMENT_TEMPLATES[DEFAULT_TEMPLATE]


def build_measurement_set(garment_type, values, notes=None, unit=INCHES) -> dict:
    """Fill the garment's template with the taken values (missing points stay None)"""
    if unit not in UNITS:
        raise ValueError(f"Unknown unit '{unit}'")
    template = get_measurement_template(garment_type)
    notes = notes or {}
    return {
        'template': template.key,
        'garment_type': garment_type,
        'unit': unit,
        'points': [
            {
                'key': p.key,
                'name': p.name,
                'category': p.category,
                'unit': unit,
                'is_required': p.is_required,
                'order': p.order,
                'value': values.get(p.key),
                'notes': notes.get(p.key),
            }
            for p in template.points
        ],
    }


def _in_inches(value, unit):
    return value * INCHES_PER_CM if unit == CENTIMETERS else value


def validate_measurements(measurement_set) -> List[str]:
    """
    Check a measurement set

    Returns a list of error messages, empty when the set is valid. A required
    point needs a positive value; no value may be negative or larger than
    MAX_PLAUSIBLE_INCHES once expressed in inches.
    """
    errors = []
    for point in measurement_set.get('points', []):
        value = point.get('value')
        if point.get('is_required') and (value is None or value <= 0):
            errors.append(f"{point['name']} is required")
        if value is not None and value < 0:
            errors.append(f"{point['name']} cannot be negative")
        if value is not None and _in_inches(value, point.get('unit', INCHES)) > MAX_PLAUSIBLE_INCHES:
            errors.append(f"{point['name']} seems unusually large ({value} {point.get('unit', INCHES)})")
    return errors


def convert_measurements(measurement_set, target_unit) -> dict:
    """Copy of the set with every value expressed in target_unit (2 decimals)"""
    if target_unit not in UNITS:
        raise ValueError(f"Unknown unit '{target_unit}'")
    points = measurement_set.get('points', [])
    if all(p.get('unit') == target_unit for p in points):
        return measurement_set

    factor = INCHES_PER_CM if target_unit == INCHES else CM_PER_INCH
    converted = []
    for point in points:
        value: Optional[float] = point.get('value')
        if value is not None and point.get('unit') != target_unit:
            value = round(value * factor, 2)
        converted.append({**point, 'unit': target_unit, 'value': value})
    return {**measurement_set, 'unit': target_unit, 'points': converted}
