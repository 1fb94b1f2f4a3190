from termcolor import colored

RULE = "-" * 72


def header(model_name: str, num_rows: int, column_labels):
    print(colored(RULE, "cyan"))
    print("{:^72}".format(f"Replaying {num_rows} states of model '{model_name}'"))
    print(colored(RULE, "cyan"))
    print("{:^6} | {:<63}".format("Col", "Output"))
    for i, label in enumerate(column_labels):
        print("{:^6} | {:<63}".format(i, label))
    if not column_labels:
        print(colored("No outputs matched the requested paths and type.", "yellow"))


def footer(computation_time: float, num_rows: int, profile_path: str = None):
    print(colored(RULE, "cyan"))
    # Define ANSI color codes
    BOLD = "\033[1m"
    RESET = "\033[0m"

    print("-" * 29 + " " + BOLD + "RESULTS" + RESET + " " + "-" * 34)
    print("Rows replayed: ", num_rows)
    print("Total Computation Time: ", computation_time)
    if profile_path is not None:
        print("Profile written to: ", profile_path)
