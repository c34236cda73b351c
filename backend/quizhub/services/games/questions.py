from __future__ import annotations

import random
from typing import Optional, Sequence, Tuple

from quizhub.models import Question


QUESTION_BANK: Tuple[Question, ...] = (
    Question("What is the capital of France?", ("Berlin", "Madrid", "Paris", "Rome"), 2),
    Question("Which planet is known as the Red Planet?", ("Earth", "Mars", "Jupiter", "Saturn"), 1),
    Question("Who wrote 'Romeo and Juliet'?", ("William Wordsworth", "Charles Dickens", "William Shakespeare", "Jane Austen"), 2),
    Question("What is the largest ocean on Earth?", ("Atlantic Ocean", "Indian Ocean", "Arctic Ocean", "Pacific Ocean"), 3),
    Question("What is the square root of 64?", ("6", "7", "8", "9"), 2),
    Question("Who painted the Mona Lisa?", ("Vincent van Gogh", "Pablo Picasso", "Leonardo da Vinci", "Claude Monet"), 2),
    Question("What is the chemical symbol for water?", ("H2O", "CO2", "O2", "NaCl"), 0),
    Question("In which year did the Titanic sink?", ("1912", "1905", "1921", "1918"), 0),
    Question("How many continents are there?", ("5", "6", "7", "8"), 2),
    Question("Which element does 'O' represent on the periodic table?", ("Gold", "Oxygen", "Osmium", "Ozone"), 1),
    Question("Which organ in the human body is responsible for pumping blood?", ("Liver", "Heart", "Brain", "Kidneys"), 1),
    Question("What is the fastest land animal?", ("Cheetah", "Lion", "Horse", "Elephant"), 0),
    Question("How many degrees are in a circle?", ("90", "180", "270", "360"), 3),
    Question("Who developed the theory of relativity?", ("Isaac Newton", "Albert Einstein", "Galileo Galilei", "Niels Bohr"), 1),
    Question("Which country is known as the Land of the Rising Sun?", ("China", "Japan", "South Korea", "Thailand"), 1),
    Question("What is the hardest natural substance on Earth?", ("Gold", "Iron", "Diamond", "Graphite"), 2),
    Question("Who is the author of 'Harry Potter'?", ("J.K. Rowling", "J.R.R. Tolkien", "Stephen King", "George R.R. Martin"), 0),
    Question("How many legs does a spider have?", ("6", "8", "10", "12"), 1),
    Question("Which gas do plants absorb from the atmosphere?", ("Oxygen", "Nitrogen", "Carbon Dioxide", "Helium"), 2),
    Question("What is the largest mammal in the world?", ("Elephant", "Blue Whale", "Giraffe", "Hippopotamus"), 1),
    Question("Who discovered penicillin?", ("Marie Curie", "Alexander Fleming", "Isaac Newton", "Louis Pasteur"), 1),
    Question("What currency is used in Japan?", ("Yen", "Won", "Dollar", "Euro"), 0),
    Question("What is the main language spoken in Brazil?", ("Spanish", "English", "Portuguese", "French"), 2),
    Question("What is the largest desert in the world?", ("Sahara", "Gobi", "Antarctic", "Kalahari"), 2),
    Question("What is the smallest unit of matter?", ("Molecule", "Atom", "Cell", "Electron"), 1),
    Question("What is the powerhouse of the cell?", ("Nucleus", "Ribosome", "Mitochondria", "Chloroplast"), 2),
    Question("Which planet is closest to the sun?", ("Venus", "Earth", "Mercury", "Mars"), 2),
    Question("How many players are there in a football (soccer) team?", ("9", "10", "11", "12"), 2),
    Question("Which animal is known as the King of the Jungle?", ("Tiger", "Elephant", "Lion", "Cheetah"), 2),
    Question("What is the national flower of Japan?", ("Tulip", "Cherry Blossom", "Rose", "Sunflower"), 1),
    Question("Which city is known as the Big Apple?", ("Los Angeles", "Chicago", "New York", "Miami"), 2),
    Question("Who was the first man to step on the moon?", ("Yuri Gagarin", "Buzz Aldrin", "Neil Armstrong", "Michael Collins"), 2),
    Question("What is the boiling point of water in Celsius?", ("90°C", "95°C", "100°C", "110°C"), 2),
    Question("Which element is known as the 'King of Chemicals'?", ("Sodium", "Sulfur", "Ammonia", "Hydrochloric Acid"), 3),
    Question("Who painted the ceiling of the Sistine Chapel?", ("Raphael", "Michelangelo", "Donatello", "Leonardo da Vinci"), 1),
    Question("Which is the longest river in the world?", ("Amazon", "Nile", "Yangtze", "Mississippi"), 1),
    Question("What is the process by which plants make their food?", ("Photosynthesis", "Respiration", "Digestion", "Fermentation"), 0),
    Question("What is the smallest bone in the human body?", ("Stapes", "Femur", "Humerus", "Radius"), 0),
    Question("Which country hosted the 2016 Summer Olympics?", ("Russia", "Brazil", "Japan", "China"), 1),
    Question("What is the primary ingredient in guacamole?", ("Tomato", "Onion", "Avocado", "Pepper"), 2),
    Question("How many time zones does Russia have?", ("7", "9", "11", "13"), 2),
    Question("What does DNA stand for?", ("Deoxyribonucleic Acid", "Digital Network Architecture", "Dynamic Neural Assembly", "Dual Neuron Array"), 0),
    Question("What color is a ruby?", ("Blue", "Green", "Red", "Yellow"), 2),
    Question("Who directed 'Jurassic Park'?", ("James Cameron", "Christopher Nolan", "Steven Spielberg", "George Lucas"), 2),
    Question("Which planet has the most moons?", ("Earth", "Mars", "Jupiter", "Saturn"), 3),
    Question("How many colors are there in a rainbow?", ("5", "6", "7", "8"), 2),
    Question("Which famous scientist introduced the three laws of motion?", ("Galileo Galilei", "Albert Einstein", "Nikola Tesla", "Isaac Newton"), 3),
    Question("Which language has the most native speakers?", ("English", "Mandarin", "Spanish", "Hindi"), 1),
    Question("What is the capital city of Australia?", ("Sydney", "Melbourne", "Perth", "Canberra"), 3),
)


def pick_question_index(bank_size: int, exclude: Optional[int] = None, rng=None) -> int:
    """Draw a bank index uniformly at random.

    ``exclude`` (the previous round's index) is never returned while the
    bank holds more than one question.
    """
    if bank_size < 1:
        raise ValueError("question bank is empty")
    rng = rng or random
    if exclude is None or bank_size == 1 or not 0 <= exclude < bank_size:
        return rng.randrange(bank_size)
    idx = rng.randrange(bank_size - 1)
    if idx >= exclude:
        idx += 1
    return idx


def pick_question(bank: Sequence[Question], exclude: Optional[int] = None, rng=None) -> Tuple[Question, int]:
    idx = pick_question_index(len(bank), exclude=exclude, rng=rng)
    return bank[idx], idx


def validate_bank(bank: Sequence[Question]):
    """Return a list of human readable problems found in ``bank``."""
    problems = []
    for i, q in enumerate(bank):
        if not q.text.strip():
            problems.append(f"#{i}: empty question text")
        if len(q.options) < 2:
            problems.append(f"#{i}: needs at least two options")
        if not 0 <= q.correct_option_index < len(q.options):
            problems.append(f"#{i}: correct option {q.correct_option_index} out of range")
    return problems
