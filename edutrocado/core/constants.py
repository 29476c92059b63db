"""
Constantes Globais do Sistema.
Fonte Única da Verdade para valores escolares partilhados.
"""

ESTADOS_PRESENCA = ('Presente', 'Ausente', 'Atraso')
PRESENTE = 'Presente'

TIPOS_MEDIDA = ('Universal', 'Seletiva', 'Adicional', 'Adaptação')

DURACAO_PADRAO = 50
DESCRICAO_AULA_GERADA = 'Aula Programada'
UTILIZADOR_PADRAO = 'default_prof'

# Escala usada por alguns professores (0-200); acima disto divide-se por 10
NOTA_MAXIMA = 20
MINIMO_NOTAS_DESCARTE = 5
