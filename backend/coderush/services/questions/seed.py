from coderush.models import Question, QuestionSet
from .store import create_question, create_question_set

SAMPLE_QUESTIONS = [
    {
        'title': 'Order React Lifecycle Methods',
        'description': 'Arrange these React lifecycle methods in the order they are called while a component mounts.',
        'format': 'DragAndDrop',
        'language': 'React',
        'difficulty': 'Medium',
        'topic': 'State & Lifecycle',
        'points': 100,
        'time_limit': 120,
        'code_snippets': [
            'render()',
            'constructor()',
            'componentDidMount()',
            'static getDerivedStateFromProps()',
        ],
        'correct_order': [1, 3, 0, 2],
    },
    {
        'title': 'Fix the Promise Chain',
        'description': "There's an error in this Promise chain. Find and fix it.",
        'format': 'FixTheCode',
        'language': 'JavaScript',
        'difficulty': 'Easy',
        'topic': 'Async Programming',
        'points': 50,
        'time_limit': 180,
        'code': (
            "fetch('https://api.example.com/data')\n"
            "  .then(response => response.json)\n"
            "  .then(data => console.log(data))\n"
            "  .catch(error => console.error(error));"
        ),
        'correct_code': (
            "fetch('https://api.example.com/data')\n"
            "  .then(response => response.json())\n"
            "  .then(data => console.log(data))\n"
            "  .catch(error => console.error(error));"
        ),
    },
    {
        'title': 'TypeScript Type Assertion',
        'description': "How do you assert that variable 'value' is of type 'string'?",
        'format': 'MultipleChoice',
        'language': 'TypeScript',
        'difficulty': 'Easy',
        'topic': 'Types',
        'points': 30,
        'time_limit': 60,
        'code': 'let value: unknown = "hello";',
        'options': [
            'value as string',
            'value instanceof string',
            "value.asType('string')",
            'string(value)',
        ],
        'correct_answer': 0,
    },
    {
        'title': 'Complete the Python Function',
        'description': 'Fill in the blanks so the function returns the factorial of n.',
        'format': 'Subobjective',
        'language': 'Python',
        'difficulty': 'Medium',
        'topic': 'Functions & Modules',
        'points': 80,
        'time_limit': 180,
        'code': 'def factorial(n):\n    if n == ___:\n        return ___\n    return n * factorial(___)',
        'blanks': ['Base case', 'Value of the base case', 'Recursive argument'],
        'answers': ['0', '1', 'n - 1'],
    },
    {
        'title': 'Implement Quick Sort',
        'description': 'Implement quicksort so that it sorts an array of integers in ascending order.',
        'format': 'AccomplishTask',
        'language': 'C++',
        'difficulty': 'Hard',
        'topic': 'STL',
        'points': 200,
        'time_limit': 3600,
        'initial_code': 'void quickSort(int arr[], int low, int high) {\n    // Your implementation here\n}',
        'test_cases': [
            {'input': '[4, 2, 8, 3, 1, 5, 7, 6]', 'output': '[1, 2, 3, 4, 5, 6, 7, 8]'},
            {'input': '[1, 1, 1, 1]', 'output': '[1, 1, 1, 1]'},
            {'input': '[-5, 10, 0, -3, 8]', 'output': '[-5, -3, 0, 8, 10]'},
        ],
        'solution': (
            'void quickSort(int arr[], int low, int high) {\n'
            '    if (low < high) {\n'
            '        int pivot = arr[high];\n'
            '        int i = low - 1;\n'
            '        for (int j = low; j < high; j++) {\n'
            '            if (arr[j] <= pivot) {\n'
            '                i++;\n'
            '                swap(arr[i], arr[j]);\n'
            '            }\n'
            '        }\n'
            '        swap(arr[i + 1], arr[high]);\n'
            '        quickSort(arr, low, i);\n'
            '        quickSort(arr, i + 2, high);\n'
            '    }\n'
            '}'
        ),
    },
]

SAMPLE_SET = {
    'title': 'Warm-up Mix',
    'description': 'One question of every format.',
    'difficulty': 'Easy',
    'language': 'JavaScript',
    'required_points': 100,
    'order': 1,
}


def seed_questions() -> int:
    """Insert the sample questions that are not in the database yet.

    Returns the number of questions created. Safe to run repeatedly.
    """
    existing = {title for (title,) in Question.query.with_entities(Question.title).all()}
    created = [create_question(q) for q in SAMPLE_QUESTIONS if q['title'] not in existing]
    if created and not QuestionSet.query.filter_by(title=SAMPLE_SET['title']).first():
        create_question_set(dict(SAMPLE_SET, question_ids=[q.id for q in created]))
    return len(created)
