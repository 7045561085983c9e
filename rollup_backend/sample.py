"""Bundled sample tree: two years of monthly figures, by quarter."""

SAMPLE_TREE = {
    "name": "Root",
    "children": [
        {
            "name": "2023",
            "children": [
                {
                    "name": "Q1",
                    "children": [
                        {"name": "Jan", "value": 98.5},
                        {"name": "Feb", "value": 112.3},
                        {"name": "Mar", "value": 87.6},
                    ],
                },
                {
                    "name": "Q2",
                    "children": [
                        {"name": "Apr", "value": 105.2},
                        {"name": "May", "value": 94.8},
                        {"name": "Jun", "value": 118.7},
                    ],
                },
                {
                    "name": "Q3",
                    "children": [
                        {"name": "Jul", "value": 113.4},
                        {"name": "Aug", "value": 46.4},
                        {"name": "Sep", "value": 42.7},
                    ],
                },
                {
                    "name": "Q4",
                    "children": [
                        {"name": "Oct", "value": 115.5},
                        {"name": "Nov", "value": 24.8},
                        {"name": "Dec", "value": 97.2},
                    ],
                },
            ],
        },
        {
            "name": "2024",
            "children": [
                {
                    "name": "Q1",
                    "children": [
                        {"name": "Jan", "value": 102.1},
                        {"name": "Feb", "value": 108.9},
                        {"name": "Mar", "value": 95.3},
                    ],
                },
                {
                    "name": "Q2",
                    "children": [
                        {"name": "Apr", "value": 88.7},
                        {"name": "May", "value": 116.4},
                        {"name": "Jun", "value": 104.2},
                    ],
                },
            ],
        },
    ],
}
